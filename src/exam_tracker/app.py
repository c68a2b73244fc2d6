"""Interactive CLI application."""
from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from exam_tracker.catalog import load_catalog
from exam_tracker.db import get_db_path
from exam_tracker.models import Exam
from exam_tracker.navigation import SYLLABUS_TAB, TODO_TAB, TabState
from exam_tracker.progress import ProgressTracker, progress_store
from exam_tracker.storage import SQLiteStorage
from exam_tracker.todos import TodoManager, todo_store

console = Console()


@dataclass
class AppState:
    catalog: tuple[Exam, ...]
    tracker: ProgressTracker
    todos: TodoManager
    tabs: TabState
    expanded: int | None = None  # subject whose topics are listed


def build_state(storage, catalog: tuple[Exam, ...] | None = None) -> AppState:
    """Wire the three persistent stores against one storage medium."""
    catalog = catalog if catalog is not None else load_catalog()
    return AppState(
        catalog=catalog,
        tracker=ProgressTracker(progress_store(storage), catalog),
        todos=TodoManager(todo_store(storage)),
        tabs=TabState(storage),
    )


def progress_bar(pct: int, width: int = 20) -> str:
    filled = pct * width // 100
    return f"[blue]{'█' * filled}{'░' * (width - filled)}[/blue]"


def show_header(state: AppState):
    tabs = "  ".join(
        f"[reverse] {t} [/reverse]" if t == state.tabs.active else f" {t} "
        for t in (SYLLABUS_TAB, TODO_TAB)
    )
    console.print(Panel(
        f"[bold]ExamTracker[/bold]\n[dim]Track your exam preparation progress[/dim]\n\n{tabs}",
        border_style="blue",
    ))


def show_syllabus(state: AppState):
    tracker = state.tracker
    exam = tracker.current
    overall = tracker.exam_completion_percentage(exam)
    console.print(f"\n  [bold]{exam.name}[/bold]  Overall Progress: [bold]{overall}%[/bold] {progress_bar(overall)}\n")
    table = Table(title="Subjects")
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Topics", justify="right")
    table.add_column("Progress", justify="right")
    for i, subject in enumerate(exam.subjects, 1):
        pct = tracker.subject_completion_percentage(subject)
        table.add_row(
            str(i),
            subject.name,
            f"{tracker.completed_topic_count(subject)} / {len(subject.topics)}",
            f"{pct}% {progress_bar(pct, 10)}",
        )
    console.print(table)


def show_subject(state: AppState, subject_index: int):
    tracker = state.tracker
    subject = tracker.current.subjects[subject_index]
    console.print(f"\n[bold]{subject.name}[/bold] ({tracker.subject_completion_percentage(subject)}%)")
    for i, topic in enumerate(subject.topics, 1):
        if tracker.is_topic_completed(tracker.current_exam, subject.id, topic.id):
            console.print(f"  [green]{i:>2}. [x] [strike]{topic.name}[/strike][/green]")
        else:
            console.print(f"  {i:>2}. [ ] {topic.name}")


def show_todos(state: AppState):
    todos = state.todos
    console.print(f"\n  [bold]Task Management[/bold]  Completion Rate: [bold]{todos.completion_rate}%[/bold] "
                  f"{progress_bar(todos.completion_rate)}\n")
    if not todos.todos:
        console.print("[dim]No tasks yet. Use 'add' to create one.[/dim]")
        return
    for i, todo in enumerate(todos.todos, 1):
        if todo.completed:
            stamp = todo.completed_at.strftime("%Y-%m-%d") if todo.completed_at else ""
            console.print(f"  [green]{i:>2}. [strike]{todo.text}[/strike]  [dim]Completed {stamp}[/dim][/green]")
        else:
            console.print(f"  {i:>2}. {todo.text}  [dim]{todo.created_at.strftime('%Y-%m-%d')}[/dim]")
    console.print(f"\n  Active: [bold]{len(todos.active_todos)}[/bold]  |  "
                  f"Completed: [bold]{len(todos.completed_todos)}[/bold]")


def render(state: AppState):
    if state.tabs.active == TODO_TAB:
        show_todos(state)
    else:
        show_syllabus(state)
        if state.expanded is not None:
            show_subject(state, state.expanded)


def show_menu(state: AppState):
    console.print("\n[bold]Commands:[/bold]")
    if state.tabs.active == TODO_TAB:
        commands = [
            ("add", "Add a task"),
            ("done", "Toggle a task"),
            ("delete", "Delete a task"),
            ("clear", "Remove completed tasks"),
            ("syllabus", "Switch to syllabus view"),
        ]
    else:
        commands = [
            ("exam", "Choose exam"),
            ("topic", "Toggle topics in a subject"),
            ("todo", "Switch to task view"),
        ]
    commands.append(("quit", "Exit"))
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def pick_index(label: str, count: int) -> int | None:
    """Ask for a 1-based position; returns a 0-based index or None."""
    answer = Prompt.ask(label, default="").strip()
    if not answer.isdigit() or not 1 <= int(answer) <= count:
        if answer:
            console.print("[red]Invalid number.[/red]")
        return None
    return int(answer) - 1


def cmd_exam(state: AppState):
    for exam in state.catalog:
        console.print(f"  [cyan]{exam.id}[/cyan]) {exam.name}")
    exam_id = Prompt.ask("Select exam", choices=[e.id for e in state.catalog], default=state.tracker.current_exam)
    state.tracker.select_exam(exam_id)
    render(state)


def cmd_topic(state: AppState):
    tracker = state.tracker
    subjects = tracker.current.subjects
    idx = pick_index("Subject number", len(subjects))
    if idx is None:
        return
    subject = subjects[idx]
    state.expanded = idx
    show_subject(state, idx)
    try:
        while True:
            t = pick_index("Topic number to toggle (Enter to finish)", len(subject.topics))
            if t is None:
                break
            tracker.toggle_topic(tracker.current_exam, subject.id, subject.topics[t].id)
    finally:
        state.expanded = None


def cmd_add(state: AppState):
    text = Prompt.ask("New task", default="")
    if state.todos.add_todo(text) is None:
        console.print("[yellow]Task text is empty, nothing added.[/yellow]")


def cmd_done(state: AppState):
    idx = pick_index("Task number", len(state.todos.todos))
    if idx is not None:
        state.todos.toggle_todo(state.todos.todos[idx].id)


def cmd_delete(state: AppState):
    idx = pick_index("Task number", len(state.todos.todos))
    if idx is not None:
        state.todos.delete_todo(state.todos.todos[idx].id)


def cmd_clear(state: AppState):
    removed = state.todos.clear_completed()
    console.print(f"[dim]Removed {removed} completed task(s).[/dim]")


def handle_command(state: AppState, choice: str) -> bool:
    """Run one command. Returns False when the user asked to quit."""
    if choice in ("quit", "exit", "q"):
        return False
    if choice in (SYLLABUS_TAB, TODO_TAB):
        state.tabs.select(choice)
    elif choice == "exam":
        cmd_exam(state)
    elif choice == "topic":
        cmd_topic(state)
    elif choice == "add":
        cmd_add(state)
    elif choice == "done":
        cmd_done(state)
    elif choice == "delete":
        cmd_delete(state)
    elif choice == "clear":
        cmd_clear(state)
    else:
        console.print("[red]Unknown command. Try again.[/red]")
    return True


def subscribe_renderer(state: AppState) -> list:
    """Redraw the active view after every commit to any of the three stores."""
    def rerender(_value):
        render(state)

    return [
        state.tracker.store.subscribe(rerender),
        state.todos.store.subscribe(rerender),
        state.tabs.store.subscribe(rerender),
    ]


def main():
    state = build_state(SQLiteStorage(get_db_path()))
    subscribe_renderer(state)

    show_header(state)
    render(state)
    while True:
        show_menu(state)
        choice = Prompt.ask("\n[bold]>[/bold]", default="").strip().lower()
        try:
            if not handle_command(state, choice):
                console.print("[dim]Good luck on your exam![/dim]")
                break
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
