"""
AI Playground main entry point.

This module provides the CLI for sending a single prompt to a model and
streaming the reply to the terminal.
"""

import argparse
import os
import sys
from typing import Optional

from .catalog import Catalog, ModelInfo, build_catalog
from .config import get_config, reset_config
from .errors import PlaygroundError, StreamRejected
from .logs import setup_logging
from .prompts import history_to_messages, map_messages_to_prompt, map_text_to_prompt
from .providers import SUPPORTED_PROVIDERS, CompletionRequest, create_provider
from .streaming import normalize_stream
from .types import SELF_ID, Message
from .ui import TerminalUI


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aiplayground",
        description="AI Playground - stream completions from hosted language models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  aiplayground --list-models                 List models of the default provider
  aiplayground "write a haiku"               Ask the default model
  aiplayground -p cohere -m command "hello"  Ask a specific model
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version information"
    )

    parser.add_argument(
        "--provider", "-p",
        choices=SUPPORTED_PROVIDERS,
        help="Provider to use (defaults to the configured provider)"
    )

    parser.add_argument(
        "--model", "-m",
        type=str,
        help="Model id (defaults to the provider's first model)"
    )

    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List the provider's models and exit"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and technical error details"
    )

    parser.add_argument(
        "prompt",
        nargs="*",
        help="Prompt to send"
    )

    return parser


def resolve_model(catalog: Catalog, provider: str, model_id: Optional[str]) -> ModelInfo:
    """Pick the requested model, or the provider's first one."""
    if model_id:
        model = catalog.get_model(model_id, provider)
        if model is None:
            raise PlaygroundError(f"Unknown model {model_id} for {provider}")
        return model

    models = catalog.models_for(provider)
    if not models:
        raise PlaygroundError(f"{provider} has no models")
    return models[0]


def build_request(catalog: Catalog, provider: str, model: ModelInfo, text: str) -> CompletionRequest:
    """Build a one-turn request for model."""
    message = Message(id="cli", text=text, sender_id=SELF_ID, is_sender=True)
    if model.model_type == "completion":
        prompt = map_text_to_prompt(text, model.id)
    else:
        prompt = map_messages_to_prompt([message], model.prompt_type)

    return CompletionRequest(
        model=model.id,
        messages=history_to_messages([message]),
        prompt=prompt,
        prompt_text=text,
        options=catalog.model_options(model.id, provider),
    )


def run_prompt(ui: TerminalUI, catalog: Catalog, provider: str, model: ModelInfo, text: str) -> int:
    """Stream one reply to the terminal."""
    client = create_provider(provider)
    try:
        request = build_request(catalog, provider, model, text)
        if model.model_type == "completion":
            frames = client.stream_completion(request)
        else:
            frames = client.stream_chat(request)

        with ui.streaming_response(model.full_name) as handler:
            normalize_stream(frames, handler.callbacks)
    except StreamRejected as e:
        ui.print_error(f"Error: {e.message}")
        return 1
    finally:
        client.close()
    return 0


def main() -> int:
    """Main entry point for AI Playground."""
    args = build_parser().parse_args()

    if args.version:
        from . import __version__
        print(f"AI Playground version {__version__}")
        return 0

    if args.debug:
        os.environ["AIPLAYGROUND_DEBUG"] = "1"
        reset_config()

    config = get_config()
    setup_logging(config.logging)
    ui = TerminalUI(show_technical=args.debug)
    catalog = build_catalog()
    provider = args.provider or config.providers.default_provider

    try:
        if args.list_models:
            ui.print_models(catalog.provider_name(provider), catalog.models_for(provider))
            return 0

        if not args.prompt:
            ui.print_error("Nothing to send. Pass a prompt, e.g. aiplayground \"hello\"")
            return 2

        model = resolve_model(catalog, provider, args.model)
        return run_prompt(ui, catalog, provider, model, " ".join(args.prompt))

    except PlaygroundError as e:
        ui.print_error(e.user_message, technical_details=e.message)
        return 1
    except ValueError as e:
        ui.print_error(str(e))
        return 2
    except KeyboardInterrupt:
        ui.print_info("Cancelled.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
