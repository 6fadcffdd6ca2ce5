"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .aggregation import ActivityStatistics, group_by_date, total_minutes
from .models import Activity, DayMarkers
from .timeutils import minutes_to_time


class SummaryPrinter:
    """Render human-readable listings in the console."""

    def __init__(self, *, show_warnings: bool = True) -> None:
        self.show_warnings = show_warnings

    def print_activities(self, activities: Sequence[Activity]) -> None:
        if not activities:
            print("Nenhuma atividade registrada.")
            return

        print(f"{'Data':<11} {'Início':>6} {'Fim':>6} {'Tempo':>6}  Tarefa")
        print("-" * 72)
        for activity in activities:
            flag = "!" if activity.has_validation_issues else " "
            print(
                f"{activity.date_key:<11} {activity.start_time:>6} {activity.end_time:>6} "
                f"{activity.duration:>6} {flag}{activity.task[:50]}"
            )
            if self.show_warnings:
                for warning in activity.validation_warnings:
                    print(f"{'':<33}- {warning}")
            print(f"{'':<33}id={activity.id}")
        print()
        print(f"Total: {len(activities)} atividades, {format_minutes(total_minutes(activities))}")

    def print_statistics(self, stats: ActivityStatistics) -> None:
        print("Estatísticas")
        print("-" * 40)
        print(f"Atividades:      {stats.total_activities}")
        print(f"Total de horas:  {stats.total_hours_formatted}")
        print(f"Dias com registro: {stats.unique_dates}")
        print(f"Média por dia:   {stats.average_hours_per_day:.2f}h")

    def print_daily_totals(self, activities: Iterable[Activity]) -> None:
        for day, day_activities in sorted(group_by_date(activities).items()):
            print(f"  {day:<12} {format_minutes(total_minutes(day_activities)):>6}")

    def print_day_markers(self, markers: Mapping[str, DayMarkers]) -> None:
        if not markers:
            print("Nenhum marcador de horário encontrado.")
            return

        print(f"{'Data':<11} {'Início':>6} {'Almoço':>6} {'Retorno':>7} {'Fim':>6} {'Total':>6}")
        print("-" * 50)
        for day, item in markers.items():
            print(
                f"{day:<11} {item.start or '-':>6} {item.lunch or '-':>6} "
                f"{item.lunch_return or '-':>7} {item.end or '-':>6} "
                f"{item.total_duration or '-':>6}"
            )

    def print_overlaps(self, overlaps: Sequence[tuple[Activity, Activity]]) -> None:
        if not overlaps:
            print("Nenhuma sobreposição encontrada.")
            return
        for current, following in overlaps:
            print(
                f"{current.date_key}: {current.start_time}-{current.end_time} "
                f"({current.task[:30]}) sobrepõe {following.start_time} ({following.task[:30]})"
            )


def format_minutes(minutes: int) -> str:
    return minutes_to_time(minutes)
