#!/usr/bin/env python3
"""Command-line entry point for the LetterNest newsletter service."""

import argparse
import asyncio
import sys

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from letternest.infrastructure.config import ApplicationConfig, load_config
from letternest.infrastructure.database import init_database
from letternest.infrastructure.logging import get_logger, setup_logging
from letternest.models.job import JobStatus
from letternest.models.state import GenerationRequest
from letternest.services.container import build_services
from letternest.strategies import TEMPLATES, get_template
from letternest.workflows.newsletter import get_workflow_status, run_newsletter_generation

console = Console()
logger = get_logger(__name__)


class LetterNestCLI:
    """Operator commands run outside the HTTP API."""

    def __init__(self, config: ApplicationConfig):
        self.config = config

    async def generate(self, user_id: str, template_key: str, count: int) -> bool:
        """Run one generation in the foreground and print its summary."""
        template = get_template(template_key)
        if template is None:
            console.print(f"[bold red]Error:[/bold red] Unknown template: {template_key}")
            return False

        services = await build_services(self.config)
        try:
            with console.status(f"[bold green]Generating {template.display_name} newsletter..."):
                job = await services.database.create_job(user_id, template.key, count)
                state = await run_newsletter_generation(
                    services,
                    template,
                    GenerationRequest(
                        user_id=user_id,
                        selected_count=count,
                        template=template.key,
                        job_id=job.id,
                    ),
                )
        finally:
            await services.close()

        status = get_workflow_status(state)
        table = Table(title=f"Generation {status['generation_id']}")
        table.add_column("Item", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Job", job.id)
        table.add_row("Bookmarks", str(status["bookmarks"]))
        table.add_row("Posts scraped", str(status["posts_scraped"]))
        table.add_row("LLM calls", str(status["llm_calls"]))
        table.add_row("Web topics", str(status["web_enrichment"]))
        table.add_row("Delivered", "[green]yes[/green]" if status["delivered"] else "[red]no[/red]")
        table.add_row("Credit consumed", str(status["credit_consumed"]))
        table.add_row("Processing time", f"{status['processing_time']:.1f}s")
        console.print(table)

        if status["failure"]:
            console.print(f"[bold red]Error:[/bold red] {status['failure']}")
            return False

        console.print("[bold green]Success:[/bold green] Newsletter generated")
        return True

    async def job_status(self, job_id: str) -> bool:
        db = await init_database(self.config)
        try:
            job = await db.get_job(job_id)
        finally:
            await db.close()

        if job is None:
            console.print(f"[bold red]Error:[/bold red] Job not found: {job_id}")
            return False

        colour = {
            JobStatus.SUCCEEDED.value: "green",
            JobStatus.FAILED.value: "red",
        }.get(job.status, "yellow")
        table = Table(title=f"Job {job.id}")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("User", job.user_id)
        table.add_row("Template", job.template)
        table.add_row("Selected", str(job.selected_count))
        table.add_row("Status", f"[{colour}]{job.status}[/{colour}]")
        table.add_row("Error", job.error or "-")
        table.add_row("Newsletter", job.newsletter_id or "-")
        table.add_row("Created", job.created_at.isoformat())
        console.print(table)
        return True

    async def reset_quotas(self) -> bool:
        db = await init_database(self.config)
        try:
            counts = await db.reset_monthly_limits(
                newsletter_quota=self.config.monthly_newsletter_generations,
                tweet_quota=self.config.monthly_tweet_generations,
                free_tweet_quota=self.config.free_tweet_generations,
            )
        finally:
            await db.close()

        table = Table(title="Monthly Quota Reset")
        table.add_column("Platform", style="cyan")
        table.add_column("Profiles", style="white")
        for platform, count in counts.items():
            table.add_row(platform, str(count))
        console.print(table)
        return True

    async def init_db(self) -> bool:
        with console.status("[bold blue]Creating tables..."):
            db = await init_database(self.config)
            await db.close()
        console.print(f"[green]Database initialized[/green] ({self.config.database_url})")
        return True


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="LetterNest bookmark newsletter service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  letternest serve --port 8000
  letternest generate --user 6b1f... --template modern-clean --count 20
  letternest job-status 3c2a...
  letternest reset-quotas
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate a newsletter in the foreground"
    )
    generate_parser.add_argument("--user", required=True, help="Profile id to generate for")
    generate_parser.add_argument(
        "--template",
        choices=sorted(TEMPLATES),
        default="modern-clean",
        help="Newsletter template"
    )
    generate_parser.add_argument(
        "--count",
        type=int,
        choices=[10, 20, 30],
        default=10,
        help="Number of bookmarks to include"
    )

    job_parser = subparsers.add_parser("job-status", help="Show a generation job")
    job_parser.add_argument("job_id", help="Job id returned by the API")

    subparsers.add_parser("reset-quotas", help="Reset monthly generation quotas")
    subparsers.add_parser("init-db", help="Create database tables")

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write logs to logs/letternest.log"
    )

    return parser


async def run_command(args: argparse.Namespace, config: ApplicationConfig) -> bool:
    cli = LetterNestCLI(config)
    if args.command == "generate":
        return await cli.generate(args.user, args.template, args.count)
    if args.command == "job-status":
        return await cli.job_status(args.job_id)
    if args.command == "reset-quotas":
        return await cli.reset_quotas()
    if args.command == "init-db":
        return await cli.init_db()
    raise ValueError(f"Unknown command: {args.command}")


def main():
    """Main application entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    setup_logging(
        level="DEBUG" if args.verbose else config.log_level,
        format_type=config.log_format,
        log_file=args.log_file,
    )

    if args.command == "serve":
        import uvicorn

        console.print(Panel.fit(
            f"[bold blue]LetterNest API[/bold blue]\n"
            f"Environment: {config.environment}\n"
            f"Listening on {args.host}:{args.port}",
            title="Server",
            border_style="blue"
        ))
        uvicorn.run(
            "letternest.api.main:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_config=None,
        )
        return

    try:
        success = asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        logger.error("Command failed", command=args.command, error=str(e))
        console.print(f"[bold red]Unexpected error:[/bold red] {e}")
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
