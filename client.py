from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import httpx


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat gateway SSE client")
    parser.add_argument("--url", default="http://localhost:8000/api/chat")
    parser.add_argument(
        "--message",
        default="Draw a flowchart of a user logging in.",
        help="User message to send.",
    )
    parser.add_argument(
        "--xml-file",
        type=Path,
        default=None,
        help="Current diagram XML to send as context.",
    )
    parser.add_argument("--provider", default=None, help="Overrides AI_PROVIDER.")
    parser.add_argument("--model", default=None, help="Overrides AI_MODEL.")
    parser.add_argument("--api-key", default=None, help="Overrides the provider key.")
    parser.add_argument("--base-url", default=None, help="Overrides the provider URL.")
    parser.add_argument("--access-code", default=None)
    parser.add_argument("--minimal-style", action="store_true")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print the request payload before sending.",
    )
    return parser.parse_args(argv)


def _build_headers(args: argparse.Namespace) -> dict[str, str]:
    overrides = {
        "x-ai-provider": args.provider,
        "x-ai-model": args.model,
        "x-ai-api-key": args.api_key,
        "x-ai-base-url": args.base_url,
    }
    headers = {name: value for name, value in overrides.items() if value}
    if args.minimal_style:
        headers["x-minimal-style"] = "true"
    return headers


def _build_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "messages": [
            {"role": "user", "parts": [{"type": "text", "text": args.message}]},
        ],
    }
    if args.xml_file is not None:
        payload["xml"] = args.xml_file.read_text(encoding="utf-8")
    if args.access_code:
        payload["access_code"] = args.access_code
    return payload


def _handle_event(data: dict[str, Any]) -> None:
    kind = data.get("type")
    if kind == "start":
        print("=== assistant ===")
    elif kind == "text_delta":
        sys.stdout.write(data.get("delta", ""))
        sys.stdout.flush()
    elif kind == "tool_call_start":
        print(f"\n[tool] {data.get('tool_name')} ({data.get('tool_call_id')})")
    elif kind == "tool_input_delta":
        sys.stdout.write(".")
        sys.stdout.flush()
    elif kind == "tool_input_complete":
        print(f"\n[tool input] {json.dumps(data.get('input'), ensure_ascii=False)}")
    elif kind == "finish":
        usage = data.get("usage")
        print("\n\n[done]" + (f" usage={usage}" if usage else ""))
    elif kind == "error":
        print(f"\n[error] {data.get('error')}")


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    payload = _build_payload(args)
    headers = _build_headers(args)
    if args.debug:
        print(f"[debug] url={args.url}")
        print(f"[debug] payload={json.dumps(payload, ensure_ascii=False)}")

    with httpx.Client(timeout=None) as client:
        with client.stream("POST", args.url, json=payload, headers=headers) as resp:
            if resp.status_code >= 400:
                resp.read()
                print(resp.text)
                raise SystemExit(1)

            for line in resp.iter_lines():
                if line.startswith("data:"):
                    _handle_event(json.loads(line[len("data:") :].strip()))


if __name__ == "__main__":
    main()
