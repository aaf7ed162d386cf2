"""
Command-line interface for synthesizing Terraform JSON from stack files.

Reads a YAML or JSON stack file, validates every catalog resource and
writes the resulting Terraform JSON configuration.
"""

import argparse
import logging
import sys
from pathlib import Path

from tfsynth import __version__
from tfsynth.core.exceptions import StackFileError, SynthesisError, ValidationError
from tfsynth.core.registry import ResourceRegistry, create_default_registry
from tfsynth.synthesis.loader import StackLoader
from tfsynth.synthesis.serializer import to_yaml
from tfsynth.synthesis.session import SynthesisSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FILE_ERROR = 2
EXIT_INTERRUPTED = 130


def show_banner() -> None:
    """Display the tfsynth banner."""
    banner = r"""  _    __                 _   _
 | |_ / _|___ _   _ _ __ | |_| |__
 | __| |_/ __| | | | '_ \| __| '_ \
 | |_|  _\__ \ |_| | | | | |_| | | |
  \__|_| |___/\__, |_| |_|\__|_| |_|
              |___/"""
    print(banner)
    print()


def configure_logging(debug: bool = False, verbose: bool = False) -> None:
    """Configure application logging.

    Args:
        debug: Enable debug-level logging if True.
        verbose: Enable info logging from the library if True.
    """
    if debug:
        level = logging.DEBUG
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    elif verbose:
        level = logging.INFO
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    else:
        level = logging.INFO
        format_str = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        stream=sys.stderr,  # stdout carries the configuration
        force=True,
    )

    if not verbose and not debug:
        # Quiet mode: only warnings from the library, info from the CLI itself
        logging.getLogger().setLevel(logging.WARNING)
        logging.getLogger(__name__).setLevel(logging.INFO)


def show_available_resources(registry: ResourceRegistry) -> None:
    """Print the registered resource types and compositions."""
    show_banner()

    print("Available Resource Types:")
    print("=" * 50)
    available_types = registry.get_available_types()
    if not available_types:
        print("No resource types registered.")
    for resource_type in available_types:
        info = registry.get(resource_type).get_resource_info()
        description = info.get("description") or "No description available"
        print(f"  {resource_type:<32} - {description}")
        required = info.get("required")
        if required:
            print(f"  {'':<32}   Required: {', '.join(required)}")

    print()
    print("Available Compositions:")
    print("=" * 50)
    for composition in registry.get_available_compositions():
        print(f"  {composition}")


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tfsynth",
        description="Synthesize validated Terraform JSON from a YAML or JSON stack file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print the Terraform JSON for a stack
  tfsynth stack.yaml

  # Write the configuration next to other Terraform files
  tfsynth stack.yaml -o infra/main.tf.json

  # Preview the same structure as YAML
  tfsynth stack.yaml --format yaml

  # List available resource types and compositions
  tfsynth --list-resources
        """,
    )
    parser.add_argument(
        "stack_file",
        nargs="?",  # Optional for --list-resources
        type=Path,
        help="YAML or JSON stack file describing the configuration",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file (default: standard output)",
    )
    parser.add_argument(
        "--format",
        choices=("json", "yaml"),
        default="json",
        help="Output format; yaml is a preview rendering (default: json)",
    )
    parser.add_argument(
        "--list-resources",
        action="store_true",
        help="List available resource types and compositions and exit",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging for detailed output"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable info logging from every declaration",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    if not args.list_resources and args.stack_file is None:
        parser.error("A stack file is required unless --list-resources is given")
    return args


def render_output(session: SynthesisSession, output_format: str) -> str:
    if output_format == "yaml":
        return to_yaml(session.document)
    return session.to_json() + "\n"


def run_synthesis(
    stack_file: Path,
    output: Path | None = None,
    output_format: str = "json",
    registry: ResourceRegistry | None = None,
) -> int:
    """
    Synthesize a stack file and write the result.

    Returns:
        The process exit code
    """
    try:
        loader = StackLoader(registry or create_default_registry())
        session = loader.load_session(stack_file)
        content = render_output(session, output_format)

        if output is None:
            sys.stdout.write(content)
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(content, encoding="utf-8")
            logger.info(f"Configuration written to: {output}")
        logger.info(
            f"Synthesized {len(session.references)} resources from {stack_file}"
        )
        return EXIT_OK

    except StackFileError as e:
        logger.error(f"Stack file error: {e.message}")
        logger.info(f"Suggestion: {e.get_recovery_hint()}")
        return EXIT_FILE_ERROR
    except ValidationError as e:
        logger.error(f"Validation failed: {e}")
        logger.info(f"Suggestion: {e.get_recovery_hint()}")
        return EXIT_INVALID
    except SynthesisError as e:
        logger.error(f"Synthesis error: {e}")
        return EXIT_INVALID
    except ValueError as e:
        logger.error(f"Invalid stack: {e}")
        return EXIT_INVALID
    except OSError as e:
        logger.error(f"File system error: {e}")
        return EXIT_FILE_ERROR


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``tfsynth`` console script."""
    args = parse_arguments(argv)
    configure_logging(args.debug, args.verbose)

    try:
        if args.list_resources:
            show_available_resources(create_default_registry())
            return EXIT_OK
        return run_synthesis(args.stack_file, args.output, args.format)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
