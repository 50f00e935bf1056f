from __future__ import annotations

from typing import Any

from django.core.management.base import BaseCommand, CommandError
from pydantic import ValidationError

from fuel_stop_planner.exceptions import RoutePlannerError
from fuel_stop_planner.schemas import TripPlanRequest
from fuel_stop_planner.services.planner import TripPlannerService


class Command(BaseCommand):
    help = "Plan fuel stops between two places and print the stop list."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument("origin", type=str, help="Starting place")
        parser.add_argument("destination", type=str, help="Destination place")
        parser.add_argument(
            "--range-miles", type=float, required=True, help="Vehicle range on a full tank"
        )
        parser.add_argument(
            "--reserve-miles",
            type=float,
            default=0.0,
            help="Reserve buffer kept in the tank between stops",
        )
        parser.add_argument(
            "--search-radius-miles",
            type=float,
            default=None,
            help="Radius searched for a station around each stop point",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        try:
            request = TripPlanRequest(
                origin=options["origin"],
                destination=options["destination"],
                range_miles=options["range_miles"],
                reserve_miles=options["reserve_miles"],
                search_radius_miles=options["search_radius_miles"],
            )
        except ValidationError as exc:
            raise CommandError(f"Invalid trip options: {exc}") from exc

        try:
            plan = TripPlannerService().plan(request)
        except RoutePlannerError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(f"Total trip distance: {plan.total_distance_miles:.1f} miles")
        if not plan.needs_stops:
            self.stdout.write(
                self.style.SUCCESS(
                    f"With a range of ~{plan.range_miles:.0f} miles, "
                    "you don't need any fuel stops on this route."
                )
            )
            return

        self.stdout.write(f"Estimated fuel stops needed: {len(plan.stops)}")
        for stop in plan.stops:
            offset = (
                f" (~{stop.distance_offset_miles:.1f} mi from ideal stop)"
                if stop.distance_offset_miles is not None
                else ""
            )
            self.stdout.write(
                f"Stop #{stop.index}: {stop.name}\n"
                f"  {stop.address}\n"
                f"  Distance from start: ~{stop.distance_from_start_miles:.1f} miles{offset}"
            )
