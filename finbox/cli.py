#!/usr/bin/env python3
"""
finbox CLI: support inbox with an AI copilot.

Every command has a short name and standard aliases:

    COMMAND         ALIASES         WHAT IT DOES
    -------         -------         ----------------------------------
    serve           start, dial     Start the finbox API server
    ring            health, ping    Ping a running instance
    summarize       summary         Summarize the sample conversation
    rephrase        tone-shift      Rewrite text in a given tone
    dump            export          Export stored conversations to JSON
    flash           info, config    Show config at a glance
    banner                          Print the banner
"""

import argparse
import asyncio
import sys

from finbox import __version__

BANNER = r"""
    ╔══════════════════════════════════════════╗
    ║                                          ║
    ║   ███████ ██ ███    ██ ██████   ██████   ║
    ║   ██      ██ ████   ██ ██   ██ ██    ██  ║
    ║   █████   ██ ██ ██  ██ ██████  ██    ██  ║
    ║   ██      ██ ██  ██ ██ ██   ██ ██    ██  ║
    ║   ██      ██ ██   ████ ██████   ██████   ║
    ║                                          ║
    ║   Support inbox, AI copilot.    v""" + __version__ + r"""    ║
    ║                                          ║
    ╚══════════════════════════════════════════╝
"""


def _load_cfg(args) -> dict:
    from finbox.config import get_config, load_config
    from pathlib import Path

    if getattr(args, "config", None):
        return load_config(Path(args.config))
    return get_config()


def _build_copilot(cfg: dict):
    from finbox.copilot import Copilot
    from finbox.gateway.gateway import AIGateway

    return Copilot(AIGateway.from_config(cfg))


def _print_result(result) -> int:
    if result.success:
        print(f"  ◀ {result.data}")
        return 0
    print(f"  ✗  {result.error}")
    return 1


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args):
    """Start the finbox API server."""
    import uvicorn

    cfg = _load_cfg(args)
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]
    gw = cfg["gateway"]

    print(BANNER)
    print(f"  Listening on {host}:{port}")
    print(f"  Provider: {gw['provider']} ({gw['model']})")
    print()

    uvicorn.run(
        "finbox.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_ring(args):
    """Ping a running finbox instance."""
    import httpx

    url = (args.url or "http://localhost:8000").rstrip("/")
    try:
        resp = httpx.get(f"{url}/api/health", timeout=5)
    except httpx.ConnectError:
        print(f"  ✗  Nothing listening at {url}")
        return 1
    except httpx.HTTPError as e:
        print(f"  ✗  Error: {e}")
        return 1

    data = resp.json()
    if resp.status_code != 200:
        print(f"  ✗  Unhealthy (HTTP {resp.status_code}): {data.get('error', '?')}")
        return 1

    checks = data.get("checks", {})
    mem = checks.get("memory", {})
    disk = checks.get("disk", {})
    print(f"  ✓  {url} is {data.get('status')}")
    print(f"  ├─ Version:     {data.get('version')} ({data.get('environment')})")
    print(f"  ├─ Uptime:      {data.get('uptime', 0):.0f}s")
    print(f"  ├─ AI gateway:  {'configured' if checks.get('api') else 'NOT configured'}")
    print(f"  ├─ Memory:      {mem.get('used', '?')} / {mem.get('total', '?')} ({mem.get('percentage', '?')})")
    print(f"  └─ Disk free:   {disk.get('free', '?')} / {disk.get('total', '?')}")
    return 0


def cmd_summarize(args):
    """Summarize the sample insurance-claim conversation."""
    from finbox.sample_data import initial_conversation

    cfg = _load_cfg(args)
    conv = initial_conversation()
    print(f"  ▶ Summarizing conversation with {conv.user.name} ({len(conv.messages)} messages)")
    result = asyncio.run(_build_copilot(cfg).summarize(conv.context()))
    return _print_result(result)


def cmd_rephrase(args):
    """Rewrite text in the requested tone."""
    cfg = _load_cfg(args)
    text = " ".join(args.text)
    result = asyncio.run(_build_copilot(cfg).rephrase(text, args.tone))
    return _print_result(result)


def cmd_dump(args):
    """Export stored conversations to JSON."""
    from pathlib import Path
    from finbox.storage.json_store import JsonStore, export_conversations

    cfg = _load_cfg(args)
    store = JsonStore(cfg["storage"]["path"])
    data = store.load_conversations()
    if data is None:
        print(f"  ✗  No conversations stored at {store.path} (run 'finbox serve' first)")
        return 1

    out_dir = Path(args.output_dir or cfg["storage"]["export_dir"])
    path = export_conversations(data, out_dir)
    if path is None:
        print(f"  ✗  Export to {out_dir} failed")
        return 1
    print(f"  📦 Dumped {len(data)} conversations to {path}")
    return 0


def cmd_flash(args):
    """Show config at a glance."""
    cfg = _load_cfg(args)
    gw, gen, retry = cfg["gateway"], cfg["generation"], cfg["retry"]

    print(BANNER)
    print("  Gateway")
    print(f"  ├─ Provider:  {gw['provider']}")
    print(f"  ├─ URL:       {gw['url']}")
    print(f"  ├─ Model:     {gw['model']}")
    print(f"  ├─ API key:   {'set' if gw.get('api_key') else 'none (anonymous)'}")
    print(f"  └─ Context:   last {gw.get('context_window', 6)} messages")
    print()
    print("  Generation")
    print(f"  ├─ Temperature: {gen.get('temperature')}")
    print(f"  ├─ Max tokens:  {gen.get('max_output_tokens')}")
    print(f"  └─ Top-p:       {gen.get('top_p')}")
    print()
    print("  Retry")
    print(f"  ├─ Attempts:  {retry.get('max_attempts')}")
    print(f"  ├─ Backoff:   {retry.get('base_delay')}s")
    print(f"  └─ Warm-up:   {retry.get('warmup_delay')}s")
    print()
    print("  Storage")
    print(f"  ├─ File:      {cfg['storage']['path']}")
    print(f"  └─ Exports:   {cfg['storage']['export_dir']}")
    return 0


def cmd_banner(args):
    """Print the banner."""
    print(BANNER)
    return 0


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="finbox",
        description="finbox: support inbox with an AI copilot.",
        epilog="Run 'finbox <command> --help' for command-specific options.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"finbox {__version__}",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to config.yaml")

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def setup_serve(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["serve", "start", "dial"],
                 "Start the finbox API server", cmd_serve, setup_serve)

    def setup_ring(p):
        p.add_argument("--url", "-u", default=None, help="finbox URL (default: http://localhost:8000)")

    _add_command(sub, ["ring", "health", "ping"],
                 "Ping a running finbox instance", cmd_ring, setup_ring)

    _add_command(sub, ["summarize", "summary"],
                 "Summarize the sample conversation", cmd_summarize)

    def setup_rephrase(p):
        p.add_argument("text", nargs="+", help="Text to rewrite")
        p.add_argument("--tone", "-t", default="friendly",
                       help="friendly, professional, formal, casual, or any label")

    _add_command(sub, ["rephrase", "tone-shift"],
                 "Rewrite text in a given tone", cmd_rephrase, setup_rephrase)

    def setup_dump(p):
        p.add_argument("--output-dir", "-o", default=None, help="Directory for the export file")

    _add_command(sub, ["dump", "export"],
                 "Export stored conversations to JSON", cmd_dump, setup_dump)

    _add_command(sub, ["flash", "info", "config"],
                 "Show config at a glance", cmd_flash)

    _add_command(sub, ["banner"], "Print the banner", cmd_banner)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        cmd_banner(args)
        parser.print_help()
        return 0

    if args.func is not cmd_banner:
        from finbox.main import _setup_logging
        try:
            _setup_logging(_load_cfg(args))
        except FileNotFoundError as e:
            print(f"  ✗  {e}")
            return 1

    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
