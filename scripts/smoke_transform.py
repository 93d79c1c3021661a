#!/usr/bin/env python
"""Post a local image to a running CORE server and save the transformed result."""
from __future__ import annotations

import argparse
import base64
import mimetypes
import sys
from pathlib import Path

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke-test the CORE transform endpoints")
    parser.add_argument("image", type=Path, help="JPEG, PNG or WebP file to upload")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--endpoint", choices=["generate-avatar", "apply-style"], default="generate-avatar")
    parser.add_argument("--prompt", help="Style prompt (required for apply-style)")
    parser.add_argument("--style", help="Opaque style label echoed back by apply-style")
    parser.add_argument("--out", type=Path, default=Path("transformed.png"))
    parser.add_argument("--timeout", type=float, default=90.0)
    args = parser.parse_args()

    content_type = mimetypes.guess_type(args.image.name)[0] or "application/octet-stream"
    files = {"image": (args.image.name, args.image.read_bytes(), content_type)}
    data = {k: v for k, v in (("prompt", args.prompt), ("style", args.style)) if v}

    resp = httpx.post(f"{args.base_url}/api/{args.endpoint}", files=files, data=data, timeout=args.timeout)
    body = resp.json()
    if resp.status_code != 200:
        print(f"Request failed ({resp.status_code}): {body}", file=sys.stderr)
        sys.exit(1)

    args.out.write_bytes(base64.b64decode(body["image"]))
    print(f"Wrote {args.out} in {body['processingTime']}ms (model={body.get('model')})")


if __name__ == "__main__":
    main()
