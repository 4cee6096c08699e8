import asyncio
import json
import os
from typing import Any, Dict, List, Optional

from core.logger import get_logger
from core.models import CatalogState
from core.notifier import CompositeNotifier, EmailNotifier, LoggingNotifier
from core.store import CatalogStore
from backends import BACKENDS

logger = get_logger(__name__)

CONFIG_PATH = os.getenv("CONFIG_PATH", "/data/config.json")
DISCARD_STALE_DETAILS = os.getenv("DISCARD_STALE_DETAILS", "false").lower() == "true"

HELP = """Commands:
  list                 show the (filtered) catalog
  search <term>        filter by name (3+ characters)
  select <id>          mark an item for import
  unselect <id>        clear an item's mark
  open <id>            show item detail
  close                close the detail view
  import               import the selected items
  reload               reload the catalog
  quit                 exit"""


def load_config(path: str = CONFIG_PATH) -> Dict[str, Any]:
    if not os.path.exists(path):
        logger.error("Config file not found at %s", path)
        raise SystemExit(1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg: Dict[str, Any] = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to load config.json at %s: %s", path, e)
        raise SystemExit(1)

    if not isinstance(cfg, dict):
        logger.error("config.json must be an object.")
        raise SystemExit(1)

    backend = str(cfg.get("backend", "")).strip().lower()
    if backend not in BACKENDS:
        logger.error(
            "config.json 'backend' must be one of %s (got %r).",
            sorted(BACKENDS), cfg.get("backend"),
        )
        raise SystemExit(1)
    cfg["backend"] = backend

    recipients = cfg.get("notify_email", [])
    if not isinstance(recipients, list):
        logger.error("config.json 'notify_email' must be a list of addresses.")
        raise SystemExit(1)

    return cfg


def build_backend(cfg: Dict[str, Any]):
    name = cfg["backend"]
    if name == "http":
        kwargs = {}
        if cfg.get("api_url"):
            kwargs["base_url"] = cfg["api_url"]
        return BACKENDS[name](**kwargs)

    backend = BACKENDS[name](cfg["db_path"]) if cfg.get("db_path") else BACKENDS[name]()
    seed_path = cfg.get("seed_path")
    if seed_path:
        backend.seed_file(seed_path)
    return backend


def build_notifier(cfg: Dict[str, Any]):
    recipients: List[str] = [
        r.strip() for r in cfg.get("notify_email", []) if isinstance(r, str) and r.strip()
    ]
    notifiers = [LoggingNotifier()]
    if recipients:
        notifiers.append(EmailNotifier(recipients))
    return CompositeNotifier(*notifiers)


def render(state: CatalogState, import_disabled: bool) -> str:
    lines = []
    if state.is_loading:
        lines.append("Loading...")
    if state.error:
        lines.append(f"Error: {state.error}")
    if state.search_term:
        lines.append(f"Filter: {state.search_term!r}")
    if not state.filtered_items and not state.is_loading:
        lines.append("No items found.")
    for it in state.filtered_items:
        mark = "x" if it.is_selected else " "
        lines.append(f"[{mark}] {it.item_id:<20} {it.name:<40} ${it.price:.2f}")
    lines.append(
        f"{len(state.selection)} selected"
        + ("" if not import_disabled else " (import disabled)")
    )
    modal = state.modal
    if modal.open:
        lines.append("-" * 60)
        if modal.current_item:
            lines.append(f"{modal.current_item.name}  ${modal.current_item.price:.2f}")
            if modal.current_item.image_url:
                lines.append(modal.current_item.image_url)
        desc = modal.current_detail.description if modal.current_detail else ""
        lines.append(desc or "(loading description...)")
    return "\n".join(lines)


async def _read_line(prompt: str) -> Optional[str]:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


async def run_session(store: CatalogStore) -> int:
    await store.load()
    print(render(store.state, store.is_import_disabled))

    while True:
        line = await _read_line("> ")
        if line is None:
            break
        cmd, _, arg = line.strip().partition(" ")
        arg = arg.strip()
        cmd = cmd.lower()

        if cmd in ("quit", "exit"):
            break
        if cmd in ("", "list"):
            pass
        elif cmd == "help":
            print(HELP)
            continue
        elif cmd == "search":
            store.set_search_term(arg)
        elif cmd in ("select", "unselect"):
            store.toggle_selection(arg, cmd == "select")
        elif cmd == "open":
            task = store.open_detail(arg)
            print(render(store.state, store.is_import_disabled))
            await task
        elif cmd == "close":
            store.close_detail()
        elif cmd == "import":
            if store.is_import_disabled:
                print("Nothing selected.")
                continue
            await store.submit_import()
        elif cmd == "reload":
            await store.load()
        else:
            print(f"Unknown command {cmd!r}. Type 'help' for commands.")
            continue

        print(render(store.state, store.is_import_disabled))

    return 0


def main() -> int:
    cfg = load_config()
    store = CatalogStore(
        build_backend(cfg),
        build_notifier(cfg),
        discard_stale_details=bool(cfg.get("discard_stale_details", DISCARD_STALE_DETAILS)),
    )
    logger.info("Starting catalog session with backend '%s'.", cfg["backend"])
    return asyncio.run(run_session(store))


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        logger.exception("Fatal importer error: %s", e)
        raise SystemExit(2)
