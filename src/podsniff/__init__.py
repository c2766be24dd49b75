"""podsniff: stream tcpdump captures out of running Kubernetes pods."""

__version__ = "0.1.0"
