#!/usr/bin/env python3
"""CLI: inspect saved canvases and run the proxy server."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the package is importable when running as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from mongodv import config
from mongodv.canvas.surface import CanvasSurface
from mongodv.storage.canvas_store import CanvasStore


def _open_store() -> CanvasStore:
    store = CanvasStore(config.SQLITE_PATH)
    store.init_db()
    return store


def cmd_list(args: argparse.Namespace) -> int:
    saves = _open_store().list_blobs()
    if not saves:
        print("No saved canvases.")
        return 0
    for save in saves:
        print(f"{save['name']:<30} {save['document_count']:>4} docs  {save['timestamp']}")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    if not _open_store().delete_blob(args.name):
        print(f"Error: No saved canvas named '{args.name}'.", file=sys.stderr)
        return 1
    print(f"Deleted '{args.name}'.")
    return 0


def cmd_links(args: argparse.Namespace) -> int:
    blob = _open_store().load_blob(args.name)
    if blob is None:
        print(f"Error: No saved canvas named '{args.name}'.", file=sys.stderr)
        return 1
    surface = CanvasSurface(width=args.width, height=args.height)
    surface.restore(blob)
    if args.expand_all:
        for doc in surface.documents:
            surface.expand_all(doc.id)
    segments = surface.frame()
    print(f"{len(surface)} documents, {len(surface.registry)} identifier nodes, "
          f"{len(segments)} connections ({surface.viewport!r})")
    for doc in surface.documents:
        box = surface.layout.card_bounds(doc.id)
        print(f"  [{doc.collection_label}] {doc.id}  at ({box.left:.1f}, {box.top:.1f}) "
              f"{box.width:.0f}x{box.height:.0f}")
    for seg in segments:
        print(
            f"  {seg.value}  ({seg.start.x:.1f}, {seg.start.y:.1f}) -> "
            f"({seg.end.x:.1f}, {seg.end.y:.1f})  {seg.color}"
        )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("mongodv.api.server:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="mongodv canvas tools")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List saved canvases").set_defaults(fn=cmd_list)

    p_delete = sub.add_parser("delete", help="Delete a saved canvas")
    p_delete.add_argument("name")
    p_delete.set_defaults(fn=cmd_delete)

    p_links = sub.add_parser("links", help="Print the connections of a saved canvas")
    p_links.add_argument("name")
    p_links.add_argument("--expand-all", action="store_true",
                         help="Open every section so nested identifiers are linked too")
    p_links.add_argument("--width", type=float, default=1280.0)
    p_links.add_argument("--height", type=float, default=800.0)
    p_links.set_defaults(fn=cmd_links)

    p_serve = sub.add_parser("serve", help="Run the proxy API server")
    p_serve.add_argument("--host", default=config.HOST)
    p_serve.add_argument("--port", type=int, default=config.PORT)
    p_serve.add_argument("--reload", action="store_true")
    p_serve.set_defaults(fn=cmd_serve)

    args = parser.parse_args()
    sys.exit(args.fn(args))


if __name__ == "__main__":
    main()
