"""
Listing Agent - Command Line
============================
analyze: photo → price, platforms, listing copy (optionally published)
batch:   several photos from a JSON file, run concurrently
chat:    one buyer message → negotiation reply

Examples:
    python main.py analyze --image photo.jpg --strategy quick_sale
    python main.py analyze --image https://example.com/p.jpg --auto-publish --mode prod
    python main.py chat --title "iPhone 13" --price 8500 --floor 7000 --message "Tar du 6500?"

The whole analyze run is bounded by workflow.timeout_sec.
"""

# Configure UTF-8 output for Windows consoles (MUST be first)
import sys
sys.stdout.reconfigure(encoding='utf-8')
sys.stderr.reconfigure(encoding='utf-8')

import argparse
import asyncio
import base64
import json
import mimetypes
import os
from typing import Any, Dict, List, Optional

from config import Cfg, default_config, load_config, print_config_summary
from core.errors import ListingAgentError, ValidationError, error_payload
from core.validation import parse_workflow_input
from models.chat import ChatContext
from negotiation.state_machine import NegotiationStateMachine, create_seller_notification
from pipeline.pipeline_runner import build_orchestrator
from runtime_mode import get_mode_config
from utils_logging import LOG_LEVEL_SILENT, log_banner, log_error, set_log_level


def image_ref_from_arg(value: str) -> str:
    """URLs and data URIs pass through; local files become base64 data URIs."""
    if value.startswith(("http://", "https://", "data:")):
        return value
    if not os.path.isfile(value):
        raise ValidationError(f"Image file not found: {value}", fields=["image_ref"])
    mime = mimetypes.guess_type(value)[0] or "image/jpeg"
    with open(value, "rb") as f:
        encoded = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _load_cfg(path: Optional[str]) -> Cfg:
    try:
        return load_config(path)
    except FileNotFoundError:
        if path:
            raise
        return default_config()


def _print_json(data: Dict[str, Any]):
    print(json.dumps(data, ensure_ascii=False, indent=2))


async def run_analyze(args: argparse.Namespace, cfg: Cfg) -> Dict[str, Any]:
    mode = get_mode_config(args.mode or cfg.runtime.mode)
    request: Dict[str, Any] = {
        "image_ref": image_ref_from_arg(args.image),
        "hints": args.hints,
        "user_preference": args.strategy,
        "timeframe": args.timeframe,
        "experience_level": args.experience,
        "risk_tolerance": args.risk,
        "auto_publish": args.auto_publish,
        "language": args.language or cfg.workflow.language,
    }
    if args.platforms:
        request["target_platforms"] = args.platforms

    inp = parse_workflow_input(request, cfg.workflow.default_platforms, cfg.workflow.language)
    orchestrator = build_orchestrator(cfg, mode)

    try:
        result, log = await asyncio.wait_for(orchestrator.run_with_log(inp), timeout=cfg.workflow.timeout_sec)
    except asyncio.TimeoutError:
        log_error(f"Workflow exceeded {cfg.workflow.timeout_sec:g}s")
        return {
            "success": False,
            "phase": "error",
            "summary": f"Workflow failed: timeout after {cfg.workflow.timeout_sec:g}s",
            "error": {"error": "workflow timeout", "kind": "timeout", "status": 408},
        }

    if args.verbose:
        log.print_summary()
    return result.to_dict(include_state=args.include_state)


async def run_batch(args: argparse.Namespace, cfg: Cfg) -> Dict[str, Any]:
    """Each entry of the JSON list is one analyze request; local image paths are inlined."""
    with open(args.requests, "r", encoding="utf-8") as f:
        requests = json.load(f)
    if not isinstance(requests, list) or not requests:
        raise ValidationError("Batch file must hold a non-empty JSON list", fields=["requests"])

    inputs = []
    for request in requests:
        request = dict(request)
        if "image" in request:
            request["image_ref"] = image_ref_from_arg(request.pop("image"))
        inputs.append(parse_workflow_input(request, cfg.workflow.default_platforms, cfg.workflow.language))

    orchestrator = build_orchestrator(cfg, get_mode_config(args.mode or cfg.runtime.mode))
    results, run_logger = await orchestrator.run_batch(inputs)
    if not args.quiet:
        run_logger.print_batch_report()
    return {
        "success": all(r.success for r in results),
        "batch_id": run_logger.run_id,
        "stats": run_logger.run_stats,
        "results": [r.to_dict(include_state=False) for r in results],
    }


def run_chat(args: argparse.Namespace, cfg: Cfg) -> Dict[str, Any]:
    context = ChatContext.from_dict({
        "listing": {
            "title": args.title,
            "price": args.price,
            "floor_price": args.floor,
            "condition": args.condition,
            "language": args.chat_language,
        },
        "settings": {
            "max_discount_percent": args.max_discount,
            "auto_accept_threshold": args.auto_accept,
            "require_seller_approval": args.require_approval,
        },
        "history": [{"role": "buyer", "content": m} for m in (args.history or [])],
    })

    agent = NegotiationStateMachine(cfg.negotiation)
    response = agent.process_message(context, args.message)
    output = response.to_dict()
    notification = create_seller_notification(context, args.message, response)
    if notification:
        output["seller_notification"] = notification.to_dict()
    return output


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="listing-agent", description="Listing decision pipeline")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--quiet", action="store_true", help="Only print the JSON result")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyse a product photo")
    analyze.add_argument("--image", required=True, help="Image URL, data URI or local file")
    analyze.add_argument("--hints", help="Seller notes (age, condition, accessories)")
    analyze.add_argument("--auto-publish", action="store_true")
    analyze.add_argument("--strategy", choices=["quick_sale", "market_price", "maximize_profit"])
    analyze.add_argument("--timeframe", choices=["urgent", "normal", "flexible"])
    analyze.add_argument("--experience", choices=["beginner", "intermediate", "expert"])
    analyze.add_argument("--risk", choices=["low", "medium", "high"])
    analyze.add_argument("--platforms", help="Comma separated default platforms, e.g. finn,facebook")
    analyze.add_argument("--language", choices=["nb-NO", "en-US"])
    analyze.add_argument("--mode", choices=["test", "prod"])
    analyze.add_argument("--include-state", action="store_true", help="Include the full workflow state")
    analyze.add_argument("--verbose", action="store_true", help="Print the run log summary")

    batch = sub.add_parser("batch", help="Analyse several photos concurrently")
    batch.add_argument("--requests", required=True, help="JSON file with a list of analyze requests")
    batch.add_argument("--mode", choices=["test", "prod"])

    chat = sub.add_parser("chat", help="Answer one buyer message")
    chat.add_argument("--title", required=True)
    chat.add_argument("--price", type=int, required=True)
    chat.add_argument("--floor", type=int)
    chat.add_argument("--auto-accept", type=int)
    chat.add_argument("--max-discount", type=float)
    chat.add_argument("--require-approval", action="store_true")
    chat.add_argument("--condition", default="used_good")
    chat.add_argument("--language", dest="chat_language", default=None, help="Reply language (no | en)")
    chat.add_argument("--history", action="append", help="Earlier buyer messages (repeatable)")
    chat.add_argument("--message", required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.quiet:
        set_log_level(LOG_LEVEL_SILENT)

    try:
        cfg = _load_cfg(args.config)
        set_log_level(LOG_LEVEL_SILENT if args.quiet else cfg.runtime.log_level)
        if not args.quiet:
            print_config_summary(cfg)

        if args.command == "analyze":
            if not args.quiet:
                log_banner("📸 LISTING ANALYSIS")
            output = asyncio.run(run_analyze(args, cfg))
        elif args.command == "batch":
            output = asyncio.run(run_batch(args, cfg))
        else:
            output = run_chat(args, cfg)
    except (ListingAgentError, FileNotFoundError, ValueError) as e:
        log_error(str(e))
        _print_json({"success": False, "error": error_payload(e)})
        return 1

    _print_json(output)
    return 0 if output.get("success", True) else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n⛔ User cancelled")
        sys.exit(130)
