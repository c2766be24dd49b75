"""CLI entrypoint for podsniff."""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from pathlib import Path
from typing import IO, Iterator

from rich.console import Console
from rich.logging import RichHandler

from podsniff import __version__
from podsniff.config import Settings, get_settings
from podsniff.errors import PodsniffError
from podsniff.kube import CaptureOptions, CaptureTarget, KubernetesGateway, load_core_api
from podsniff.sniffer import DEFAULT_TCPDUMP_IMAGE, run_capture


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="podsniff",
        description="Capture traffic of a running pod with tcpdump in an ephemeral debug container.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("pod", help="Name of the pod to capture on")
    parser.add_argument(
        "--namespace",
        "-n",
        default=None,
        help="Namespace of the pod (default: from env or 'default')",
    )
    parser.add_argument(
        "--container",
        "-c",
        default=None,
        help="Container whose network is captured (default: first container of the pod)",
    )
    parser.add_argument(
        "--interface",
        "-i",
        default=None,
        help="Interface to capture on (default: from env or 'any')",
    )
    parser.add_argument(
        "--filter",
        "-f",
        default=None,
        help="tcpdump filter expression, e.g. 'tcp port 80'",
    )
    parser.add_argument(
        "--output",
        "-o",
        default="-",
        help="File to write the pcap stream to; '-' writes to stdout",
    )
    parser.add_argument(
        "--image",
        default=None,
        help=f"Debug container image (default: {DEFAULT_TCPDUMP_IMAGE})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the debug container to start (default: from env or 60)",
    )
    parser.add_argument(
        "--kubeconfig",
        type=Path,
        default=None,
        help="Path to kubeconfig (default: KUBECONFIG env or ~/.kube/config)",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubernetes context to use",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


class _LazyFileSink:
    """Binary file sink that only opens (and truncates) its file on the first write."""

    def __init__(self, path: str) -> None:
        self.name = path
        self._file: IO[bytes] | None = None

    def write(self, data: bytes) -> int:
        if self._file is None:
            self._file = open(self.name, "wb")
        return self._file.write(data)

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()


@contextlib.contextmanager
def _open_output(path: str) -> Iterator[IO[bytes]]:
    """Yield a binary sink; stdout is never closed here, a file is left untouched until data arrives."""
    if path == "-":
        yield sys.stdout.buffer
        return
    sink = _LazyFileSink(path)
    try:
        yield sink  # type: ignore[misc]
    finally:
        sink.close()


def _build_options(args: argparse.Namespace, settings: Settings, container: str) -> CaptureOptions:
    """Merge CLI flags over settings; flags win when given."""
    return CaptureOptions(
        target=CaptureTarget(
            namespace=args.namespace or settings.namespace,
            pod=args.pod,
            container=container,
        ),
        interface=args.interface or settings.interface,
        capture_filter=args.filter if args.filter is not None else settings.capture_filter,
        image=args.image or settings.image,
        timeout=args.timeout if args.timeout is not None else settings.container_timeout,
    )


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for podsniff CLI."""
    args = _parse_args(argv)
    # stdout may carry the pcap stream, so logs always go to stderr
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )
    logger = logging.getLogger("podsniff")

    try:
        settings = get_settings()
        if args.kubeconfig:
            settings.kubeconfig = args.kubeconfig
        namespace = args.namespace or settings.namespace

        core = load_core_api(
            kubeconfig=str(settings.kubeconfig) if settings.kubeconfig else None,
            context=args.context or settings.context,
        )
        gateway = KubernetesGateway(core, namespace, poll_interval=settings.poll_interval)
        container = args.container or gateway.default_container(args.pod)
        options = _build_options(args, settings, container)

        with _open_output(args.output) as output:
            run_capture(options, gateway, output)
        return 0
    except KeyboardInterrupt:
        logger.info("Capture interrupted")
        return 130
    except BrokenPipeError:
        logger.warning("Output closed by reader, capture stopped")
        return 0
    except PodsniffError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.exception("podsniff failed")
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
