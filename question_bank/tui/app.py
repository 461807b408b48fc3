"""
Operator console.

Catalog screen: browse one category (or all), filter by a search term,
export the current view to CSV.
Search screen: type question numbers, results refresh after a short pause
(debounced), pick a missing number and add its content.
Import screen: paste text, preview what will be imported, run the import
with a progress bar.
"""

from pathlib import Path
from typing import Any, Callable, List, Optional

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, ProgressBar, Static, TextArea

from ..core.bulk import BulkImportReport, import_records
from ..core.catalog import list_questions
from ..core.config import RECONCILE_DEBOUNCE_SEC, SEARCH_DEBOUNCE_SEC
from ..core.debounce import Debouncer
from ..core.errors import QuestionBankError
from ..core.export import export_view
from ..core.parser import ParseOutcome, parse_lines
from ..core.schema import Category, QuestionRecord, ReconcileResult
from ..core.workflow import SearchSession, SessionState
from ..util.logging import logger


class _TextualTimer:
    """Gives a Textual Timer the cancel() method Debouncer expects."""

    def __init__(self, timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


def textual_scheduler(owner) -> Callable[[float, Callable[[], Any]], _TextualTimer]:
    """Schedule debounced callbacks on the owner's event loop (owner.set_timer)."""
    def schedule(delay: float, callback: Callable[[], Any]) -> _TextualTimer:
        return _TextualTimer(owner.set_timer(delay, callback))
    return schedule


def format_results(result: ReconcileResult) -> str:
    if result is None:
        return "No search yet"

    lines = [f"Found ({len(result.found)}):"]
    for record in result.found:
        lines.append(f"  {record.identifier}  {record.content}")
    lines.append(f"Missing ({len(result.missing)}):")
    for identifier in result.missing:
        lines.append(f"  {identifier}")
    if result.errors:
        lines.append("Could not read: " + ", ".join(f"{t} ({kind})" for t, kind in result.errors.items()))
    return "\n".join(lines)


def format_catalog(records: List[QuestionRecord], limit: int = 200) -> str:
    if not records:
        return "No questions"
    lines = [f"{r.identifier:<10} {r.content}" for r in records[:limit]]
    if len(records) > limit:
        lines.append(f"... and {len(records) - limit} more")
    return "\n".join(lines)


def format_import_preview(outcomes: List[ParseOutcome]) -> str:
    matched = [o for o in outcomes if o.matched]
    dropped = [o for o in outcomes if not o.matched]

    lines = [f"{len(matched)} question(s) ready, {len(dropped)} line(s) ignored"]
    for outcome in matched[:10]:
        lines.append(f"  {outcome.record.identifier} [{outcome.record.category.value}] {outcome.record.content[:60]}")
    if len(matched) > 10:
        lines.append(f"  ... and {len(matched) - 10} more")
    if dropped:
        lines.append("Ignored lines: " + ", ".join(str(o.line_no) for o in dropped[:20]))
    return "\n".join(lines)


def format_import_report(report: BulkImportReport) -> str:
    lines = [report.message]
    for outcome in report.outcomes:
        if outcome.reason:
            lines.append(f"  #{outcome.index} {outcome.identifier or '?'}: {outcome.status.value} - {outcome.reason}")
    return "\n".join(lines)


class CatalogScreen(Screen):
    """Browse questions with a category filter and a debounced search box."""

    BINDINGS = [("escape", "app.pop_screen", "Back")]

    def __init__(self, out_dir: Optional[Path] = None):
        super().__init__()
        self.category: Optional[Category] = None
        self.records: List[QuestionRecord] = []
        self.out_dir = out_dir or Path(".")
        self.debouncer = Debouncer(SEARCH_DEBOUNCE_SEC, scheduler=textual_scheduler(self))

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Horizontal(
                Button("All", id="filter-all", variant="primary"),
                Button("WFD", id="filter-WFD"),
                Button("RS", id="filter-RS"),
                Button("RA", id="filter-RA"),
                Button("Export CSV", id="export", variant="success"),
                id="filter-bar",
            ),
            Input(id="search", placeholder="Search content or number"),
            Static("", id="catalog-count"),
            Static("", id="catalog-list"),
            id="catalog-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_list()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self.debouncer.schedule(self.refresh_list)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""

        if button_id == "export":
            self.export()
        elif button_id.startswith("filter-"):
            tag = button_id.split("-", 1)[1]
            self.category = None if tag == "all" else Category(tag)
            for button in self.query("#filter-bar Button"):
                if button.id != "export":
                    button.variant = "primary" if button.id == button_id else "default"
            self.refresh_list()

    def refresh_list(self) -> None:
        term = self.query_one("#search", Input).value
        try:
            self.records = list_questions(self.category, term)
        except QuestionBankError as e:
            self.notify(str(e), title="Load failed", severity="error")
            return
        self.query_one("#catalog-count", Static).update(f"{len(self.records)} question(s)")
        self.query_one("#catalog-list", Static).update(format_catalog(self.records))

    def export(self) -> None:
        term = self.query_one("#search", Input).value.strip()
        view = "search" if term else (self.category.value.lower() if self.category else "all")
        export = export_view(self.records, view)
        path = self.out_dir / export.filename
        path.write_bytes(export.to_bytes())
        logger.log_operation("export.csv", "success", {"view": view, "rows": len(self.records), "path": str(path)})
        self.notify(f"Saved {len(self.records)} question(s) to {path}", title="Export")

    def on_unmount(self) -> None:
        self.debouncer.cancel()


class SearchScreen(Screen):
    """Reconcile question numbers for one category and fill in missing ones."""

    BINDINGS = [("escape", "app.pop_screen", "Back")]

    def __init__(self, category: Category = Category.WFD):
        super().__init__()
        self.session = SearchSession(category)
        self.debouncer = Debouncer(RECONCILE_DEBOUNCE_SEC, scheduler=textual_scheduler(self))

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Horizontal(
                Button("WFD", id="category-WFD", variant="primary"),
                Button("RS", id="category-RS"),
                Button("RA", id="category-RA"),
                id="category-bar",
            ),
            Label("Question numbers (comma-separated):"),
            Input(id="numbers", placeholder="1, 2, 418"),
            Static("No search yet", id="results"),
            Label("Missing number to add:"),
            Input(id="missing-number", placeholder="#1 WFD"),
            TextArea(id="missing-content"),
            Button("Add missing question", id="add-missing", variant="success"),
            Static("", id="status"),
            id="search-container",
        )
        yield Footer()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "numbers":
            self.debouncer.schedule(self.run_search)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "numbers":
            self.debouncer.cancel()
            self.run_search()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""

        if button_id.startswith("category-"):
            self.switch_category(Category(button_id.split("-", 1)[1]))
        elif button_id == "add-missing":
            self.add_missing()

    def switch_category(self, category: Category) -> None:
        self.debouncer.cancel()
        self.session = SearchSession(category)
        for cat in Category:
            self.query_one(f"#category-{cat.value}", Button).variant = "primary" if cat == category else "default"
        self.run_search()

    def run_search(self) -> None:
        text = self.query_one("#numbers", Input).value
        if not text.strip():
            self.session.reset()
            self._render()
            return
        self.session.search(text)
        self._render()

    def add_missing(self) -> None:
        identifier = self.query_one("#missing-number", Input).value.strip()
        content = self.query_one("#missing-content", TextArea).text

        if self.session.state == SessionState.IDLE:
            self.notify("Search for question numbers first", severity="warning")
            return
        if not self.session.select_missing(identifier):
            self.notify(self.session.error, severity="error")
            return
        if self.session.add_missing(content):
            self.query_one("#missing-number", Input).value = ""
            self.query_one("#missing-content", TextArea).text = ""
            self.notify(self.session.message, title="Question added", severity="information")
        else:
            self.notify(self.session.error, title="Add failed", severity="error")
        self._render()

    def _render(self) -> None:
        self.query_one("#results", Static).update(format_results(self.session.result))
        self.query_one("#status", Static).update(self.session.error or self.session.message or "")
        if self.session.missing:
            self.query_one("#missing-number", Input).placeholder = self.session.missing[0]

    def on_unmount(self) -> None:
        self.debouncer.cancel()


class ImportScreen(Screen):
    """Paste text, preview the parsed questions, import them in order."""

    BINDINGS = [("escape", "app.pop_screen", "Back")]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Label("Paste text (#418 WFD ..., #123 RS ..., RA001 ...):"),
            TextArea(id="import-text"),
            Horizontal(
                Button("Preview", id="preview", variant="primary"),
                Button("Import", id="run-import", variant="success"),
            ),
            ProgressBar(id="import-progress", total=100, show_eta=False),
            Static("", id="import-status"),
            id="import-container",
        )
        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "preview":
            self.preview()
        elif event.button.id == "run-import":
            self.run_import()

    def preview(self) -> None:
        outcomes = list(parse_lines(self.query_one("#import-text", TextArea).text))
        self.query_one("#import-status", Static).update(format_import_preview(outcomes))

    def run_import(self) -> None:
        outcomes = list(parse_lines(self.query_one("#import-text", TextArea).text))
        records = [o.record for o in outcomes if o.matched]
        if not records:
            self.notify("No question lines recognised", severity="warning")
            return

        bar = self.query_one("#import-progress", ProgressBar)
        bar.update(total=len(records), progress=0)

        def on_progress(completed: int, total: int) -> None:
            bar.update(total=total, progress=completed)

        report = import_records(records, progress=on_progress)
        self.query_one("#import-status", Static).update(format_import_report(report))
        severity = "error" if report.aborted else ("warning" if report.failed else "information")
        self.notify(report.message, title="Import", severity=severity)
        if report.succeeded == report.total:
            self.query_one("#import-text", TextArea).text = ""


class HomeScreen(Screen):
    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Static("Question Catalog Console", classes="title"),
            Button("Browse catalog", id="open-catalog"),
            Button("Search / add missing", id="open-search", variant="primary"),
            Button("Import pasted text", id="open-import", variant="success"),
            Static("Press Q to quit", classes="footer-hint"),
            id="home-container",
        )
        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "open-catalog":
            self.app.push_screen(CatalogScreen())
        elif event.button.id == "open-search":
            self.app.push_screen(SearchScreen())
        elif event.button.id == "open-import":
            self.app.push_screen(ImportScreen())


class QuestionConsoleApp(App):
    """Textual console for question catalog operators."""

    TITLE = "Question Catalog"
    BINDINGS = [("q", "quit", "Quit")]

    def on_mount(self) -> None:
        logger.info("Question console started")
        self.push_screen(HomeScreen())


def run():
    QuestionConsoleApp().run()
