# fairplay/cli/scan.py
"""
Scan a live page for dark patterns and optionally patch it.

Usage:
    fairplay-scan https://shop.example/checkout
    fairplay-scan https://shop.example/checkout --json
    fairplay-scan https://shop.example/checkout --apply-all --output patched.html
    fairplay-scan https://shop.example/checkout --mock
"""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

load_dotenv()


def detection_to_dict(detection, record=None) -> dict:
    """Plain-dict view of a detection for --json output."""
    data = {
        "id": detection.id,
        "category": detection.category.id,
        "category_name": detection.category.name,
        "title": detection.title,
        "description": detection.description,
        "selector": detection.element_selector,
        "evidence": detection.evidence,
    }
    if record is not None:
        data["modification"] = {
            "status": record.status.phase.value,
            "reason": record.status.reason,
        }
    return data


def session_to_dict(session, url: str) -> dict:
    return {
        "url": url,
        "status": session.state.status.value,
        "message": session.state.message,
        "backend": session.used_backend.value if session.used_backend else None,
        "original_html_size": session.original_html_size,
        "sent_html_size": session.sent_html_size,
        "chunk_attempts": [{"size": a.size, "status": a.status.value} for a in session.chunk_attempts],
        "reasoning": session.reasoning,
        "detections": [
            detection_to_dict(d, session.lifecycle.record_for(d)) for d in session.detections
        ],
    }


def print_report(session, url: str) -> None:
    state = session.state
    print(f"\n=== FairPlay Scan: {url} ===\n")
    print(f"Status: {state.status.value}")
    if state.message:
        print(f"  {state.message}")

    if session.used_backend:
        print(f"Backend: {session.used_backend.display_name}")
        print(f"HTML sent: {session.sent_html_size} of {session.original_html_size} chars")
    if session.chunk_attempts:
        attempts = ", ".join(f"{a.size} ({a.status.value})" for a in session.chunk_attempts)
        print(f"Chunk attempts: {attempts}")

    detections = session.detections
    if detections:
        print(f"\nDetections ({len(detections)}):")
        for detection in detections:
            record = session.lifecycle.record_for(detection)
            print(f"\n  [{detection.category.name}] {detection.title}")
            print(f"    {detection.description}")
            print(f"    Selector: {detection.element_selector}")
            if record is not None and not record.status.is_pending:
                line = f"    Fix: {record.status.phase.value}"
                if record.status.reason:
                    line += f" ({record.status.reason})"
                print(line)
    print()


async def run_scan(args) -> int:
    from playwright.async_api import async_playwright

    from fairplay.browser import PlaywrightSurface, capture_html
    from fairplay.config import get_settings
    from fairplay.llm import get_llm_provider
    from fairplay.logging_config import configure_logging
    from fairplay.services.pattern_scan import ScanState
    from fairplay.session import PageSession

    settings = get_settings()
    configure_logging(json_format=settings.LOG_FORMAT == "json", level=settings.LOG_LEVEL)
    provider = get_llm_provider("mock" if args.mock else None, settings=settings)

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            await page.goto(args.url, wait_until="domcontentloaded", timeout=args.timeout * 1000)

            surface = PlaywrightSurface(page)
            session = PageSession.from_settings(surface, settings=settings, provider=provider)

            html = await capture_html(surface)
            if html is None:
                # Unreadable page reports as safe
                session.reset_for_new_page()
                session.state = ScanState.safe()
            else:
                await session.scan_page(html, url=page.url)

            if args.apply_all:
                for detection in session.detections:
                    await session.toggle(detection)

            if args.output:
                with open(args.output, "w", encoding="utf-8") as f:
                    f.write(await surface.read_html())
        finally:
            await browser.close()
            await provider.close()

    if args.json:
        print(json.dumps(session_to_dict(session, args.url), indent=2))
    else:
        print_report(session, args.url)
        if args.output:
            print(f"Wrote page HTML to {args.output}")

    return 1 if session.state.status.value == "error" else 0


def cmd_scan(args):
    """Scan one URL and report detections."""
    sys.exit(asyncio.run(run_scan(args)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fairplay-scan",
        description="FairPlay dark pattern scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a page with the configured local model
  fairplay-scan https://shop.example/checkout

  # Apply every fix and save the patched page
  fairplay-scan https://shop.example/checkout --apply-all --output patched.html

  # Try the pipeline without a model server
  fairplay-scan https://shop.example/checkout --mock --json
        """,
    )
    parser.add_argument("url", help="Page to scan")
    parser.add_argument("--apply-all", action="store_true", help="Apply a fix for every detection")
    parser.add_argument("--output", metavar="FILE", help="Write the resulting page HTML to FILE")
    parser.add_argument("--mock", action="store_true", help="Use the canned mock provider")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--timeout", type=int, default=60, help="Page load timeout in seconds (default: 60)")
    parser.set_defaults(func=cmd_scan)
    return parser


def main():
    args = build_parser().parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
