import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.http_remote import HttpContentRemote
from src.adapters.memory_remote import InMemoryContentRemote
from src.components.inference import MandatoryFields
from src.components.lifecycle import CircularStore, PopupStore
from src.core.ports.remote import ContentRemotePort
from src.domain.state import StatusMachine
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(
            os.environ.get("CONTENT_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.api_base_url = os.environ.get("CONTENT_API_BASE_URL") or None
        self.remote_backend = os.environ.get("CONTENT_REMOTE", "http").strip().lower()


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    settings = get_settings()
    if not settings.rules_path.exists():
        # Built-in defaults match the shipped rules.yaml
        return Rules()
    return load_rules(settings.rules_path)


# --- Remote store ---
@lru_cache
def get_remote() -> ContentRemotePort:
    settings = get_settings()
    if settings.remote_backend == "memory":
        return InMemoryContentRemote()
    return HttpContentRemote.from_rules(get_rules().remote, base_url=settings.api_base_url)


# --- Stores ---
# Stores own the confirmed collections and the pending decisions, so one
# instance of each lives for the whole process.
@lru_cache
def get_popup_store() -> PopupStore:
    rules = get_rules()
    return PopupStore(
        get_remote(),
        mandatory=MandatoryFields.from_rules(rules),
        machine=StatusMachine("popup", rules.popup.status_machine),
    )


@lru_cache
def get_circular_store() -> CircularStore:
    rules = get_rules()
    return CircularStore(
        get_remote(),
        mandatory=MandatoryFields.from_rules(rules),
        machine=StatusMachine("circular", rules.circular.status_machine),
        max_attachment_bytes=rules.circular.max_attachment_bytes,
    )


def reset_singletons() -> None:
    """Forget cached settings, rules, remote and stores."""
    for cached in (get_settings, get_rules, get_remote, get_popup_store, get_circular_store):
        cached.cache_clear()


# --- Loaded stores (first request pulls the collection) ---
async def loaded_popup_store(store: PopupStore = Depends(get_popup_store)) -> PopupStore:
    if not store.loaded:
        await store.fetch_all()
    return store


async def loaded_circular_store(
    store: CircularStore = Depends(get_circular_store),
) -> CircularStore:
    if not store.loaded:
        await store.fetch_all()
    return store
