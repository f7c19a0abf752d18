"""Typer CLI application for running and administering the quiz server."""

import asyncio
import logging

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from src.config.settings import get_settings
from src.export.docx_generator import export_quiz_with_separate_answers, export_to_docx
from src.models.quiz import Quiz
from src.storage.database import Database
from src.storage.repositories import QuizRepository

app = typer.Typer(
    name="quiz-genie",
    help="AI-generated quizzes with automatic grading",
    add_completion=False,
)

console = Console()


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(5000, "--port", "-p", help="Port to listen on", min=1, max=65535),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """
    Run the HTTP API.

    Example:
        quiz-genie serve --port 5000
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    display_config(host, port)
    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@app.command("init-db")
def init_db() -> None:
    """Create the database tables if they do not exist."""
    settings = get_settings()

    async def _run() -> None:
        database = Database(settings.database_url)
        try:
            await database.create_all()
        finally:
            await database.dispose()

    asyncio.run(_run())
    console.print(f"[green]✓[/green] Database ready at {settings.database_url}")


@app.command()
def export(
    quiz_id: str = typer.Argument(..., help="Id of the stored quiz"),
    user_id: int = typer.Option(..., "--user", "-u", help="Id of the quiz owner"),
    output: str = typer.Option("quiz", "--output", "-o", help="Output file name (without extension)"),
    output_dir: str = typer.Option("output", "--output-dir", help="Directory to write into"),
    separate_answers: bool = typer.Option(
        True,
        "--separate-answers/--include-answers",
        help="Write a separate answer key file vs include answers in the paper",
    ),
) -> None:
    """
    Export a stored quiz to DOCX.

    Example:
        quiz-genie export 3f2c... --user 1 -o physics_test
    """
    quiz = asyncio.run(load_quiz(quiz_id, user_id))
    if quiz is None:
        console.print(
            f"[red]Error:[/red] Quiz {quiz_id} not found for user {user_id}.", style="bold"
        )
        raise typer.Exit(code=1)

    display_quiz_summary(quiz)

    try:
        if separate_answers:
            questions_file, answers_file = export_quiz_with_separate_answers(
                quiz, output, output_dir
            )
            console.print("\n[green]✓[/green] Quiz exported successfully!")
            console.print(f"  Questions: {questions_file}")
            console.print(f"  Answers:   {answers_file}")
        else:
            output_file = export_to_docx(
                quiz, f"{output}.docx", include_answers=True, output_dir=output_dir
            )
            console.print(f"\n[green]✓[/green] Quiz exported to: {output_file}")
    except Exception as e:
        console.print(f"\n[red]Error during export:[/red] {e}", style="bold")
        raise typer.Exit(code=1)


async def load_quiz(quiz_id: str, user_id: int) -> Quiz | None:
    """Read one quiz from the configured database."""
    database = Database(get_settings().database_url)
    try:
        return await QuizRepository(database.sessions).get_owned(quiz_id, user_id)
    finally:
        await database.dispose()


@app.command()
def info() -> None:
    """Display information about the quiz server."""
    settings = get_settings()
    info_text = f"""
[bold cyan]Quiz Genie[/bold cyan]
Version: 0.1.0

[bold]Pipeline:[/bold]
  • Prompt builder - Generation and grading prompts
  • Provider adapter - OpenAI, Gemini, Bedrock or local model
  • Parser - Validates and cleans generated questions
  • Evaluator - String matching plus AI grading of long answers

[bold]Question types:[/bold] MCQ, FIB, Descriptive, Combined exams

[bold]Provider backend:[/bold] {settings.provider_backend.value}
[bold]Database:[/bold] {settings.database_url}
    """
    console.print(Panel(info_text, title="Quiz Genie Info", border_style="cyan"))


def display_config(host: str, port: int) -> None:
    """Display the server configuration before starting."""
    settings = get_settings()
    table = Table(title="Server Configuration", show_header=False, border_style="cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Address", f"http://{host}:{port}")
    table.add_row("Provider backend", settings.provider_backend.value)
    table.add_row("Database", settings.database_url)
    table.add_row("Question caps", f"{settings.max_single_questions} / {settings.max_combined_questions}")
    table.add_row("CORS origins", ", ".join(settings.cors_origins))

    console.print()
    console.print(table)


def display_quiz_summary(quiz: Quiz) -> None:
    """Display a summary of a stored quiz."""
    table = Table(title="Quiz Summary", border_style="green")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Title", quiz.title)
    table.add_row("Type", quiz.quiz_type.value)
    table.add_row("Class", quiz.class_label)
    table.add_row("Curriculum", quiz.curriculum)
    table.add_row("Chapters", quiz.chapters)
    table.add_row("Total Questions", str(quiz.total_questions))

    console.print()
    console.print(table)


@app.callback()
def callback() -> None:
    """
    Quiz Genie - Generate quizzes with AI and grade the answers.
    """
    pass


if __name__ == "__main__":
    app()
