"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters import FileCommitmentStore, HttpCommitmentStore, InMemoryCommitmentStore
from ..adapters.appointment_records import parse_datetime
from ..clock import FixedClock, SystemClock
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SchedulingError
from ..domain.models import (
    AlternativeOption,
    FeasibilityResult,
    ParseResult,
    ProposedSession,
    SchedulingRequest,
    Weekday,
    format_weekdays,
)
from ..services import SessionSchedulingService

app = typer.Typer(
    name="sessionplanner",
    help="Find mutually available session slots for two parties",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DayOption = Annotated[Optional[List[str]], typer.Option("--day", help="Preferred day (English or German name), repeatable")]
TimeOption = Annotated[Optional[List[str]], typer.Option("--time", help="Preferred time range HH:MM-HH:MM, repeatable")]
DurationOption = Annotated[Optional[int], typer.Option("--duration", "-d", help="Session duration in minutes")]
SessionsOption = Annotated[Optional[int], typer.Option("--sessions", "-n", help="Number of sessions needed")]
AlternatingOption = Annotated[Optional[bool], typer.Option("--alternating/--fixed-roles", help="Alternate the organizer role between sessions")]
DistributeOption = Annotated[Optional[bool], typer.Option("--distribute/--earliest", help="Spread sessions out instead of taking the earliest slots")]
MinGapOption = Annotated[Optional[int], typer.Option("--min-gap", help="Minimum days between sessions")]
MaxGapOption = Annotated[Optional[int], typer.Option("--max-gap", help="Maximum days between sessions")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Pretend the current time is this ISO timestamp")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")]


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_store(config: AppConfig):
    """Create the commitment store the configuration points to."""
    if config.store.appointments_file:
        return FileCommitmentStore(config.store.appointments_file, timezone=config.timezone)

    if config.store.api_url:
        return HttpCommitmentStore(
            base_url=config.store.api_url,
            access_token=config.store.api_token,
            timezone=config.timezone,
            timeout=config.store.timeout_seconds,
        )

    console.print("[yellow]⚠  No commitment store configured, assuming empty calendars[/yellow]\n")
    return InMemoryCommitmentStore()


def _build_service(config: AppConfig, now_option: Optional[str]) -> SessionSchedulingService:
    if now_option:
        try:
            instant = parse_datetime(now_option, config.timezone)
        except ValueError as e:
            console.print(f"[red]Error parsing --now: {e}[/red]")
            raise typer.Exit(1)
        clock = FixedClock(instant)
    else:
        clock = SystemClock(config.timezone)

    return SessionSchedulingService.from_config(config, _build_store(config), clock=clock)


def _build_request(
    config: AppConfig,
    service: SessionSchedulingService,
    party_a: str,
    party_b: str,
    days: Optional[List[str]],
    times: Optional[List[str]],
    duration: Optional[int],
    sessions: Optional[int],
    alternating: Optional[bool],
    distribute: Optional[bool],
    min_gap: Optional[int],
    max_gap: Optional[int],
) -> ParseResult[SchedulingRequest]:
    """Merge command line options over the configured defaults."""
    defaults = config.defaults

    def pick(value, default):
        return default if value is None else value

    return service.build_request(
        config.resolve_party(party_a),
        config.resolve_party(party_b),
        days or defaults.preferred_days,
        times or defaults.preferred_times,
        session_duration_minutes=pick(duration, defaults.session_duration_minutes),
        sessions_needed=pick(sessions, defaults.sessions_needed),
        distribute_evenly=pick(distribute, defaults.distribute_evenly),
        min_days_between=pick(min_gap, defaults.min_days_between),
        max_days_between=pick(max_gap, defaults.max_days_between),
        is_alternating_roles=pick(alternating, defaults.alternating_roles),
    )


def _print_summary(request: SchedulingRequest, warnings: List[str]) -> None:
    console.print("[bold cyan]📊 Summary:[/bold cyan]")
    console.print(f"   Parties: {request.party_a_id}, {request.party_b_id}")
    console.print(f"   Days: {format_weekdays(request.weekdays)}")
    console.print(f"   Times: {', '.join(str(w) for w in request.time_windows)}")
    console.print(f"   Sessions: {request.sessions_needed} × {request.session_duration_minutes} minutes")
    for warning in warnings:
        console.print(f"   [yellow]⚠ {warning}[/yellow]")
    console.print()


def _print_proposals(proposals: List[ProposedSession]) -> None:
    table = Table(title="Proposed sessions", show_header=True, header_style="bold cyan")
    table.add_column("Session", style="bold yellow")
    table.add_column("Organizer")
    table.add_column("Participant")
    table.add_column("Confidence", justify="right")
    table.add_column("Note", style="dim")

    for proposal in proposals:
        table.add_row(
            proposal.format_display(),
            proposal.organizer_id,
            proposal.participant_id,
            f"{proposal.confidence_score:.2f}",
            proposal.note or "",
        )

    console.print(table)


def _print_feasibility(result: FeasibilityResult) -> None:
    if result.is_feasible:
        console.print(
            f"[bold green]✓ Feasible:[/bold green] {result.available_count} slots available "
            f"for {result.requested_count} sessions"
        )
    else:
        console.print(
            f"[bold red]✗ Not feasible:[/bold red] {result.available_count} of "
            f"{result.requested_count} slots available"
        )
    for warning in result.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")
    for recommendation in result.recommendations:
        console.print(f"  → {recommendation}")


def _print_alternatives(options: List[AlternativeOption]) -> None:
    if not options:
        console.print("[yellow]No relaxed preference set unlocks enough slots.[/yellow]")
        return

    table = Table(title="Alternatives", show_header=True, header_style="bold cyan")
    table.add_column("Option", style="bold yellow")
    table.add_column("Days")
    table.add_column("Times")
    table.add_column("Slots", justify="right")
    table.add_column("Confidence", justify="right")

    for option in options:
        table.add_row(
            option.description,
            format_weekdays(option.relaxed_weekdays),
            ", ".join(str(w) for w in option.relaxed_time_windows),
            str(option.available_count),
            f"{option.confidence_score:.1f}",
        )

    console.print(table)


@app.command()
def propose(
    party_a: Annotated[str, typer.Argument(help="First party (alias or id), organizes session 1")],
    party_b: Annotated[str, typer.Argument(help="Second party (alias or id)")],
    config_file: ConfigOption = None,
    day: DayOption = None,
    time: TimeOption = None,
    duration: DurationOption = None,
    sessions: SessionsOption = None,
    alternating: AlternatingOption = None,
    distribute: DistributeOption = None,
    min_gap: MinGapOption = None,
    max_gap: MaxGapOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Propose sessions for two parties.

    Examples:

        sessionplanner propose alice bob --day Monday --day Wednesday --time 14:00-16:00 -n 4

        sessionplanner propose alice bob --day Dienstag -n 6 --distribute --alternating
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        service = _build_service(config, now)
        parsed = _build_request(
            config, service, party_a, party_b, day, time, duration,
            sessions, alternating, distribute, min_gap, max_gap,
        )
        request = parsed.value
        _print_summary(request, parsed.warnings)

        plan = asyncio.run(service.plan(request, warnings=parsed.warnings))

        if plan.proposals:
            _print_proposals(plan.proposals)
        else:
            console.print("[yellow]⚠ No available slots found.[/yellow]")

        if plan.feasibility:
            console.print()
            _print_feasibility(plan.feasibility)
            console.print()
            _print_alternatives(plan.alternatives)

        console.print()

    except (FileNotFoundError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    party_a: Annotated[str, typer.Argument(help="First party (alias or id)")],
    party_b: Annotated[str, typer.Argument(help="Second party (alias or id)")],
    config_file: ConfigOption = None,
    day: DayOption = None,
    time: TimeOption = None,
    duration: DurationOption = None,
    sessions: SessionsOption = None,
    min_gap: MinGapOption = None,
    max_gap: MaxGapOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Check whether the requested number of sessions can be scheduled.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        service = _build_service(config, now)
        parsed = _build_request(
            config, service, party_a, party_b, day, time, duration,
            sessions, None, None, min_gap, max_gap,
        )
        errors = service.validate_preferences(day, time).errors
        _print_summary(parsed.value, [])

        result = asyncio.run(service.check_feasibility(parsed.value, preference_errors=errors))
        _print_feasibility(result)
        console.print()

        if not result.is_feasible:
            raise typer.Exit(2)

    except (FileNotFoundError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def alternatives(
    party_a: Annotated[str, typer.Argument(help="First party (alias or id)")],
    party_b: Annotated[str, typer.Argument(help="Second party (alias or id)")],
    config_file: ConfigOption = None,
    day: DayOption = None,
    time: TimeOption = None,
    duration: DurationOption = None,
    sessions: SessionsOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Show relaxed preference sets that would unlock enough slots.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        service = _build_service(config, now)
        parsed = _build_request(
            config, service, party_a, party_b, day, time, duration,
            sessions, None, None, None, None,
        )
        _print_summary(parsed.value, parsed.warnings)

        options = asyncio.run(service.suggest_alternatives(parsed.value))
        _print_alternatives(options)
        console.print()

    except (FileNotFoundError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def reschedule(
    party_a: Annotated[str, typer.Argument(help="First party (alias or id)")],
    party_b: Annotated[str, typer.Argument(help="Second party (alias or id)")],
    config_file: ConfigOption = None,
    weekday: Annotated[Optional[List[int]], typer.Option("--weekday", help="Day number 0=Sunday .. 6=Saturday, repeatable")] = None,
    time: TimeOption = None,
    duration: DurationOption = None,
    count: Annotated[int, typer.Option("--count", help="Number of slots to list")] = 5,
    at: Annotated[Optional[str], typer.Option("--at", help="Only check this ISO start time")] = None,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="Id of the session being moved")] = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Find new slots for a session that has to be moved.

    Examples:

        sessionplanner reschedule alice bob --weekday 1 --weekday 3 --time 09:00-12:00

        sessionplanner reschedule alice bob --at 2024-12-02T10:00 --exclude apt-1001
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        service = _build_service(config, now)
        owner_a = config.resolve_party(party_a)
        owner_b = config.resolve_party(party_b)
        session_minutes = duration or config.defaults.session_duration_minutes

        if at:
            try:
                start = parse_datetime(at, config.timezone)
            except ValueError as e:
                console.print(f"[red]Error parsing --at: {e}[/red]")
                raise typer.Exit(1)

            free = asyncio.run(service.is_slot_available(
                owner_a, owner_b, start, session_minutes, exclude_id=exclude
            ))
            if free:
                console.print(f"[green]✓ {start.format('DD.MM.YYYY HH:mm')} is free for both parties.[/green]")
            else:
                console.print(f"[red]✗ {start.format('DD.MM.YYYY HH:mm')} is blocked.[/red]")
                raise typer.Exit(2)
            return

        result = asyncio.run(service.find_reschedule_slots(
            owner_a,
            owner_b,
            weekday if weekday is not None else [1, 2, 3, 4, 5],
            time,
            session_minutes,
            count,
        ))

        for warning in result.warnings:
            console.print(f"[yellow]⚠ {warning}[/yellow]")

        if not result.value:
            console.print("[yellow]⚠ No available slots found.[/yellow]")
            return

        table = Table(title=f"Free slots for {owner_a} and {owner_b}", show_header=True, header_style="bold cyan")
        table.add_column("#", style="bold yellow", justify="right")
        table.add_column("Day")
        table.add_column("When")

        for index, start in enumerate(result.value, start=1):
            end = start.add(minutes=session_minutes)
            table.add_row(
                str(index),
                Weekday.of(start).label,
                f"{start.format('DD.MM.YYYY HH:mm')} - {end.format('HH:mm')}",
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def conflicts(
    party: Annotated[str, typer.Argument(help="Party (alias or id)")],
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    verbose: VerboseOption = False,
):
    """
    List a party's booked sessions in a date range.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        tz = config.timezone

        try:
            if start:
                start_date = pendulum.from_format(start, "YYYY-MM-DD", tz=tz).start_of("day")
            else:
                start_date = pendulum.now(tz).start_of("day")
            if end:
                end_date = pendulum.from_format(end, "YYYY-MM-DD", tz=tz).end_of("day")
            else:
                end_date = start_date.add(days=7).end_of("day")
        except ValueError as e:
            console.print(f"[red]Error parsing date: {e}[/red]")
            raise typer.Exit(1)

        service = SessionSchedulingService.from_config(config, _build_store(config))
        owner_id = config.resolve_party(party)
        records = asyncio.run(service.list_conflicts(owner_id, start_date, end_date))

        if not records:
            console.print(f"[green]✓ No booked sessions for {owner_id} in this range.[/green]")
            return

        table = Table(title=f"Booked sessions of {owner_id}", show_header=True, header_style="bold cyan")
        table.add_column("When", style="bold yellow")
        table.add_column("Title")
        table.add_column("With")
        table.add_column("Status")
        table.add_column("Severity")

        for record in records:
            table.add_row(
                f"{record.start.format('DD.MM.YYYY HH:mm')} - {record.end.format('HH:mm')}",
                record.title,
                record.other_party_id or "",
                record.status_label,
                record.severity.name,
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_parties(
    config_file: ConfigOption = None,
):
    """
    List all configured parties.
    """
    try:
        config = _load_config(config_file)

        if not config.parties:
            console.print("[yellow]No parties defined in the config file.[/yellow]")
            return

        table = Table(
            title="Configured parties",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Name (Alias)", style="bold yellow")
        table.add_column("Id", style="dim")

        for party in config.parties:
            table.add_row(party.name, party.id)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]sessionplanner[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
