"""Interactive CLI application."""
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from sign_tutor.catalog import SignCatalog, load_catalog
from sign_tutor.dashboard import get_accuracy_color, get_category_progress, get_dashboard_summary
from sign_tutor.db import DEFAULT_DB_PATH
from sign_tutor.progress import get_sign_progress
from sign_tutor.questions import QUESTION_TYPES, TEXT_TO_IMAGE
from sign_tutor.recommendations import next_best_signs
from sign_tutor.selection import MODES
from sign_tutor.session import SessionController, SessionSummary
from sign_tutor.settings import DIFFICULTIES, QuizSettings, load_settings, save_settings
from sign_tutor.sm2 import round_half_up
from sign_tutor.store import ProgressStore

console = Console()

PRIORITY_COLORS = {"high": "red", "medium": "yellow", "low": "dim"}


class SessionExitRequested(Exception):
    """User asked to leave the current quiz."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]Traffic Sign Trainer[/bold]\n[dim]Adaptive spaced repetition[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Start a quiz with your current settings"),
        ("dashboard", "Progress overview"),
        ("recommend", "What to study next"),
        ("sign", "Progress for one sign"),
        ("settings", "Change quiz settings"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def choose_categories(catalog: SignCatalog) -> list[str]:
    categories = catalog.categories()
    for i, cat in enumerate(categories, 1):
        console.print(f"  [cyan]{i}[/cyan]) {cat.code} {cat.name} [dim]({len(cat.signs)} signs)[/dim]")
    raw = Prompt.ask("Categories (comma separated numbers, blank for all)", default="")
    if not raw.strip():
        return [c.id for c in categories]
    chosen = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= len(categories):
            chosen.append(categories[int(part) - 1].id)
    return chosen


def show_summary(summary: SessionSummary) -> None:
    color = get_accuracy_color(summary.percentage)
    console.print(Panel(
        f"Score: [bold]{summary.correct_answers}/{summary.total_questions}[/bold] "
        f"[{color}]({summary.percentage}%)[/{color}]\n"
        f"Best streak: {summary.best_streak}  |  Time: {summary.duration_ms // 1000}s",
        title="Quiz Complete", border_style=color,
    ))
    if summary.missed:
        console.print("[bold]Missed signs:[/bold]")
        for item in summary.missed:
            console.print(f"  [red]✗[/red] {item.item_id} {item.display_name}")
    if not summary.saved:
        console.print("[yellow]Some results could not be saved.[/yellow]")


def run_quiz_session(controller: SessionController) -> SessionSummary:
    """Ask every question of an active session and return its summary."""
    total = len(controller.state.items)
    while True:
        question = controller.current_question()
        snapshot = controller.get_progress_snapshot()
        if question.type == TEXT_TO_IMAGE:
            body = question.prompt
        else:
            body = f"{question.prompt}\n[dim]Sign image: {question.sign.img}[/dim]"
        console.print(Panel(body, title=f"Question {snapshot.current}/{total}", border_style="cyan"))
        for i, option in enumerate(question.options, 1):
            label = option.img if question.type == TEXT_TO_IMAGE else option.name
            console.print(f"  [cyan]{i})[/cyan] {label}")
        choice = session_prompt(
            "\nYour answer (q to stop)", choices=[str(i) for i in range(1, len(question.options) + 1)] + ["q"],
        )
        selected = question.options[int(choice) - 1]
        result = controller.answer_current(selected.id)
        if result.is_correct:
            console.print(f"[green]Correct![/green] Streak: {result.streak}")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{result.correct_item.name}[/green]")
        if not result.saved:
            console.print("[yellow]Progress could not be saved for this sign.[/yellow]")
        console.print()
        if not controller.advance():
            return controller.finalize()


def cmd_quiz(controller: SessionController, settings: QuizSettings):
    console.print(f"\n[bold]Quiz[/bold] mode: {settings.mode}, difficulty: {settings.difficulty}")
    categories = choose_categories(controller.catalog)
    started = controller.start_session(
        settings.mode, categories, settings.questions_per_quiz,
        difficulty=settings.difficulty, question_type=settings.question_type,
    )
    if not started:
        console.print("[yellow]No signs match that selection.[/yellow]")
        return
    try:
        summary = run_quiz_session(controller)
    except SessionExitRequested:
        summary = controller.finalize()
    show_summary(summary)
    if summary.best_streak > settings.best_streak:
        settings.best_streak = summary.best_streak
        save_settings(controller.store, settings)


def cmd_dashboard(controller: SessionController):
    summary = get_dashboard_summary(controller.store, controller.catalog)
    color = get_accuracy_color(summary["accuracy"])
    console.print(Panel(
        f"Signs studied: [bold]{summary['studied_signs']}/{summary['total_signs']}[/bold]  |  "
        f"Mastered: [bold]{summary['mastered_signs']}[/bold]  |  "
        f"Accuracy: [{color}]{summary['accuracy']}%[/{color}]\n"
        f"Streak: [bold]{summary['streak']}[/bold] days  |  "
        f"Quizzes: [bold]{summary['total_quizzes']}[/bold]  |  "
        f"Best score: [bold]{summary['best_score']}%[/bold]",
        title="Dashboard", border_style="blue",
    ))

    table = Table(title="Category Progress")
    table.add_column("Category", style="cyan")
    table.add_column("Studied", justify="right")
    table.add_column("Mastered", justify="right")
    table.add_column("Accuracy", justify="right")
    for cat in get_category_progress(controller.store, controller.catalog):
        acc = round_half_up(cat["accuracy"] * 100)
        acc_color = get_accuracy_color(acc)
        table.add_row(
            f"{cat['code']} {cat['name']}",
            f"{cat['studied']}/{cat['total']}",
            str(cat["mastered"]),
            f"[{acc_color}]{acc}%[/{acc_color}]" if cat["total_attempts"] else "-",
        )
    console.print(table)


def cmd_recommend(controller: SessionController):
    recommendations = controller.get_recommendations()
    if not recommendations:
        console.print("[green]Nothing to suggest right now.[/green]")
    for rec in recommendations:
        color = PRIORITY_COLORS[rec.priority]
        console.print(f"  [{color}]●[/{color}] [bold]{rec.title}[/bold]: {rec.reason} "
                      f"[dim](try: {rec.action})[/dim]")

    table = Table(title="Next Best Signs")
    table.add_column("Sign", style="cyan")
    table.add_column("Category")
    table.add_column("Mastery")
    for sign in next_best_signs(controller.store, controller.catalog, count=5):
        mastery = sign["mastery"]
        table.add_row(sign["name"], sign["category_name"], f"[{mastery.color}]{mastery.label}[/{mastery.color}]")
    console.print(table)

    at_risk = controller.get_at_risk_signs(limit=5)
    if at_risk:
        console.print("\n[bold]Most likely to slip:[/bold]")
        for p in at_risk:
            console.print(f"  {p['name']} [dim]({round_half_up(p['fail_probability'] * 100)}% risk)[/dim]")


def cmd_sign(controller: SessionController):
    item_id = Prompt.ask("Sign id").strip()
    sign = controller.catalog.get(item_id)
    if sign is None:
        console.print(f"[red]No sign with id {item_id!r}.[/red]")
        return
    progress = get_sign_progress(controller.store, sign.id)
    mastery = progress["mastery"]
    lines = [f"[bold]{sign.name}[/bold] [dim]({sign.category_name})[/dim]",
             f"Mastery: [{mastery.color}]{mastery.label}[/{mastery.color}]  |  Retention: {progress['retention']}"]
    if progress["studied"]:
        lines.append(
            f"Accuracy: {round_half_up(progress['accuracy'] * 100)}% over {progress['total_attempts']} attempts  |  "
            f"Next review: {progress['next_review']:%Y-%m-%d}"
        )
    else:
        lines.append("[dim]Not studied yet.[/dim]")
    console.print(Panel("\n".join(lines), title=sign.id, border_style="cyan"))


def cmd_settings(controller: SessionController, settings: QuizSettings):
    settings.mode = Prompt.ask("Quiz mode", choices=list(MODES), default=settings.mode)
    settings.difficulty = Prompt.ask("Difficulty", choices=list(DIFFICULTIES), default=settings.difficulty)
    settings.question_type = Prompt.ask("Question type", choices=list(QUESTION_TYPES), default=settings.question_type)
    settings.questions_per_quiz = IntPrompt.ask("Questions per quiz", default=settings.questions_per_quiz)
    settings.shuffle_options = Confirm.ask("Shuffle answer options", default=settings.shuffle_options)
    save_settings(controller.store, settings)
    controller.shuffle_options = settings.shuffle_options
    console.print("[green]Settings saved.[/green]")


def main():
    store = ProgressStore(DEFAULT_DB_PATH)
    catalog = load_catalog()
    if not len(catalog):
        console.print("[red]Could not load the sign catalog.[/red]")
        return
    settings = load_settings(store)
    controller = SessionController(store, catalog, shuffle_options=settings.shuffle_options)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        try:
            if choice == "quiz":
                cmd_quiz(controller, settings)
            elif choice == "dashboard":
                cmd_dashboard(controller)
            elif choice == "recommend":
                cmd_recommend(controller)
            elif choice == "sign":
                cmd_sign(controller)
            elif choice == "settings":
                cmd_settings(controller, settings)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Drive safely![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
