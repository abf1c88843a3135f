"""Test helpers: a scripted Navigator and document locators."""

from hotline_scraper.errors import AuthenticationError, NavigationError

BASE = "https://dh.identifix.com/HotlineArchive/Document"


def doc_url(ha_number: str | None) -> str:
    """A document locator as the listing view exposes it."""
    if ha_number is None:
        return f"{BASE}?Source=archive"
    return f"{BASE}?HANumber={ha_number}&Source=archive"


class FakeNavigator:
    """In-memory stand-in for the remote vehicle selector.

    catalog: {make: [(model_value, model_label, [(engine_value, engine_label, [locators])])]}
    documents: {locator: (identifying_text, content)}
    """

    def __init__(
        self,
        catalog: dict,
        documents: dict | None = None,
        fail_listing: set[str] | None = None,
        fail_documents: set[str] | None = None,
        fail_engine_list: set[str] | None = None,
        fail_model_list: set[str] | None = None,
        fail_auth: bool = False,
    ) -> None:
        self.catalog = catalog
        self.documents = documents or {}
        self.fail_listing = fail_listing or set()
        self.fail_documents = fail_documents or set()
        self.fail_engine_list = fail_engine_list or set()
        self.fail_model_list = fail_model_list or set()
        self.fail_auth = fail_auth
        self.selected: dict[str, str] = {}
        self.location = ""
        self.calls: list[tuple] = []
        self.closed = False

    # Helpers for assertions
    def calls_to(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]

    @property
    def opened(self) -> list[str]:
        return [c[1] for c in self.calls_to("open")]

    def _models(self) -> list:
        return self.catalog.get(self.selected.get("make"), [])

    def _engines(self) -> list:
        for model_value, _, engines in self._models():
            if model_value == self.selected.get("model"):
                return engines
        return []

    # Navigator protocol
    async def authenticate(self) -> None:
        self.calls.append(("authenticate",))
        if self.fail_auth:
            raise AuthenticationError("bad credentials")

    async def select_axis(self, level: str, value: str) -> None:
        self.calls.append(("select_axis", level, value))
        order = ["year", "make", "model", "engine"]
        for lower in order[order.index(level) + 1:]:
            self.selected.pop(lower, None)
        self.selected[level] = value

    async def list_options(self, level: str) -> list[tuple[str, str]]:
        self.calls.append(("list_options", level))
        if level == "model":
            if self.selected.get("make") in self.fail_model_list:
                raise NavigationError("model dropdown timed out")
            return [("", "-- Select Model --")] + [(v, label) for v, label, _ in self._models()]
        if level == "engine":
            if self.selected.get("model") in self.fail_engine_list:
                raise NavigationError("engine dropdown timed out")
            return [("0", "-- Select Engine --")] + [(v, label) for v, label, _ in self._engines()]
        return []

    async def activate_view(self, view_id: str) -> None:
        self.calls.append(("activate_view", view_id))
        if view_id == "hotline_archives" and self.selected.get("engine") in self.fail_listing:
            raise NavigationError("Hotline Archives link not found")

    async def list_document_locators(self) -> list[str]:
        self.calls.append(("list_document_locators",))
        for engine_value, _, locators in self._engines():
            if engine_value == self.selected.get("engine"):
                return list(locators)
        return []

    async def open(self, locator: str) -> None:
        self.calls.append(("open", locator))
        if locator in self.fail_documents:
            raise NavigationError(f"timeout opening {locator}")
        self.location = locator

    async def extract_current_document(self) -> tuple[str, str]:
        self.calls.append(("extract_current_document",))
        return self.documents.get(self.location, ("unknown", ""))

    async def current_location(self) -> str:
        return self.location

    async def reset(self) -> None:
        self.calls.append(("reset",))
        self.selected = {}
        self.location = ""

    async def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True
