import argparse
import os
import sys

from devassist.config.app_config import DEFAULT_HOST, DEFAULT_PORT


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Run the devassist server",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--host", type=str, default=DEFAULT_HOST,
                        help=f"Interface to bind (default: {DEFAULT_HOST})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        help=f"Port number to run the server on (default: {DEFAULT_PORT})")
    parser.add_argument("--home", type=str, default=None,
                        help="Directory for projects and settings (default: ~/.devassist)")
    parser.add_argument("--model", type=str, default=None,
                        help="Gemini model id (e.g., --model gemini-2.5-pro)")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity")
    return parser.parse_args(argv)


def setup_environment(args):
    """Export CLI options as environment variables before config is imported."""
    if args.home:
        os.environ["DEVASSIST_HOME"] = os.path.abspath(os.path.expanduser(args.home))
    if args.model:
        os.environ["DEVASSIST_MODEL"] = args.model
    if args.log_level:
        os.environ["DEVASSIST_LOG_LEVEL"] = args.log_level


def main(argv=None):
    args = parse_arguments(argv)
    setup_environment(args)

    # Import here so the environment set above is visible to the config modules
    import uvicorn
    from devassist.utils.logging_utils import logger
    from devassist.server import app

    logger.info(f"Starting devassist on http://{args.host}:{args.port}")
    try:
        uvicorn.run(app, host=args.host, port=args.port)
    except KeyboardInterrupt:
        logger.info("Server stopped")
        sys.exit(0)


if __name__ == "__main__":
    main()
