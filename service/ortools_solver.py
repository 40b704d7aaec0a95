"""
OR-Tools CP-SAT based batch lesson assignment.

Alternative to the greedy heuristic for placing a whole batch of participants
at once: every participant gets at most one lesson, lessons never overlap,
and the number of scheduled participants is maximized, preferring earlier
slots among equally good answers.
"""

from ortools.sat.python import cp_model
from typing import List, Dict, Tuple, Optional
from models.schemas import (
    WeekSchedule, Person, Booking, LessonAssignment, ScheduleSolution, SolutionMetadata,
)
from service.intervals import DAYS_PER_WEEK, MINUTES_PER_DAY, is_empty
from service.intersection import DROP_ZONE_STRIDE, get_valid_drop_positions
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class ORToolsScheduler:
    """
    Constraint-based batch scheduler using OR-Tools CP-SAT solver.

    Candidate starts come from the intersection engine, so every placement
    it returns is also a legal manual drop position.
    """

    def __init__(
        self,
        time_limit_seconds: int = 10,
        random_seed: int = 42,
        num_workers: int = 1,
        stride: int = DROP_ZONE_STRIDE,
    ):
        """
        Initialize the scheduler.

        Args:
            time_limit_seconds: Maximum time allowed for solver
            random_seed: Seed for deterministic search
            num_workers: Number of search workers
            stride: Step between candidate starts inside an overlap
        """
        self.time_limit_seconds = time_limit_seconds
        self.stride = stride
        self.model = cp_model.CpModel()
        self.solver = cp_model.CpSolver()

        # Solver parameters for deterministic behavior
        self.solver.parameters.random_seed = random_seed
        self.solver.parameters.num_workers = num_workers
        self.solver.parameters.max_time_in_seconds = time_limit_seconds

        # Data structures
        self.participants: List[Person] = []
        # participant index -> list of (day, start, presence var, interval var)
        self.variables: Dict[int, List[Tuple[int, int, cp_model.IntVar, cp_model.IntervalVar]]] = {}

    def solve(
        self,
        owner_availability: Optional[WeekSchedule],
        participants: List[Person],
        participant_availabilities: Optional[Dict[str, WeekSchedule]] = None,
        committed_bookings: Optional[List[Booking]] = None,
    ) -> ScheduleSolution:
        """
        Main entry point to solve the batch assignment problem.

        Args:
            owner_availability: The owner's availability
            participants: Participants to place
            participant_availabilities: Declared availability per participant id;
                participants without one are limited by owner availability only
            committed_bookings: Already-committed lessons that must not be overlapped

        Returns:
            ScheduleSolution; failures are reported through metadata.status
        """
        self.model = cp_model.CpModel()
        self.participants = list(participants)
        self.variables = {}

        try:
            if is_empty(owner_availability):
                logger.warning("Owner has no availability; nothing can be scheduled")
                return self._create_unscheduled_solution("INFEASIBLE", 0.0)

            # Step 1: Create decision variables from candidate starts
            self._create_variables(
                owner_availability,
                participant_availabilities or {},
                committed_bookings or [],
            )

            # Step 2: Add hard constraints
            self._add_hard_constraints()

            # Step 3: Objective
            self._add_objective()

            # Step 4: Solve the model
            start_time = datetime.now()
            status = self.solver.Solve(self.model)
            solve_time = (datetime.now() - start_time).total_seconds()

            # Step 5: Extract and return solution
            return self._extract_solution(status, solve_time)

        except Exception as e:
            logger.error(f"Scheduling error: {str(e)}", exc_info=True)
            return self._create_unscheduled_solution("ERROR", 0.0)

    def _create_variables(
        self,
        owner_availability: WeekSchedule,
        participant_availabilities: Dict[str, WeekSchedule],
        committed_bookings: List[Booking],
    ):
        """Create one optional interval per candidate placement."""
        for p_idx, participant in enumerate(self.participants):
            duration = participant.required_duration_minutes
            availability = participant_availabilities.get(participant.id, owner_availability)
            self.variables[p_idx] = []

            for day in range(DAYS_PER_WEEK):
                positions = get_valid_drop_positions(
                    day, duration, owner_availability, availability, self.stride
                )

                for start in positions:
                    if self._collides_with_bookings(day, start, duration, committed_bookings):
                        continue

                    present = self.model.NewBoolVar(f"p_{p_idx}_day_{day}_start_{start}")
                    interval = self.model.NewOptionalFixedSizeIntervalVar(
                        start, duration, present, f"lesson_{p_idx}_day_{day}_start_{start}"
                    )
                    self.variables[p_idx].append((day, start, present, interval))

            logger.debug(f"Participant {participant.id}: {len(self.variables[p_idx])} candidate slots")

    def _add_hard_constraints(self):
        """Add all hard constraints to the model."""

        # 1. Each participant gets at most one lesson
        for candidates in self.variables.values():
            if candidates:
                self.model.Add(sum(present for _, _, present, _ in candidates) <= 1)

        # 2. No owner double-booking: lessons on the same day never overlap
        for day in range(DAYS_PER_WEEK):
            day_intervals = [
                interval
                for candidates in self.variables.values()
                for cand_day, _, _, interval in candidates
                if cand_day == day
            ]
            if len(day_intervals) > 1:
                self.model.AddNoOverlap(day_intervals)

    def _add_objective(self):
        """Maximize scheduled participants, then prefer earlier slots."""
        week_minutes = DAYS_PER_WEEK * MINUTES_PER_DAY
        # Weight large enough that one more scheduled participant beats any earliness gain
        count_weight = week_minutes * (len(self.participants) + 1)

        terms = []
        for candidates in self.variables.values():
            for day, start, present, _ in candidates:
                terms.append(present * (count_weight - (day * MINUTES_PER_DAY + start)))

        if terms:
            self.model.Maximize(sum(terms))

    def _extract_solution(self, status, solve_time: float) -> ScheduleSolution:
        """Extract solution from solver and format response."""
        if status == cp_model.INFEASIBLE:
            return self._create_unscheduled_solution("INFEASIBLE", solve_time)

        if status == cp_model.UNKNOWN:
            logger.warning("Solver timeout - no solution found within time limit")
            return self._create_unscheduled_solution("TIMEOUT", solve_time)

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return self._create_unscheduled_solution("ERROR", solve_time)

        assignments = []
        unscheduled = []

        for p_idx, participant in enumerate(self.participants):
            placed = next(
                ((day, start) for day, start, present, _ in self.variables[p_idx]
                 if self.solver.Value(present) == 1),
                None
            )
            if placed is None:
                unscheduled.append(participant.id)
                continue

            day, start = placed
            assignments.append(LessonAssignment(
                participant_id=participant.id,
                day_of_week=day,
                start_minute=start,
                duration_minutes=participant.required_duration_minutes,
            ))

        # Keep output in calendar order
        assignments.sort(key=lambda a: (a.day_of_week, a.start_minute))
        status_str = "OPTIMAL" if status == cp_model.OPTIMAL else "FEASIBLE"

        return ScheduleSolution(
            assignments=assignments,
            unscheduled=unscheduled,
            metadata=SolutionMetadata(
                total_participants=len(self.participants),
                scheduled_participants=len(assignments),
                strategy="optimal",
                status=status_str,
                compute_time_ms=solve_time * 1000,
            ),
        )

    # ===========================
    # Helper Methods
    # ===========================

    def _collides_with_bookings(self, day: int, start: int, duration: int, bookings: List[Booking]) -> bool:
        """Check if a candidate overlaps an already-committed booking."""
        end = start + duration
        for booking in bookings:
            if booking.day != day:
                continue
            booked_start = booking.time_interval.start
            booked_end = booked_start + booking.time_interval.duration
            if start < booked_end and booked_start < end:
                return True
        return False

    def _create_unscheduled_solution(self, status: str, solve_time: float) -> ScheduleSolution:
        """Create a solution with every participant left unscheduled."""
        return ScheduleSolution(
            assignments=[],
            unscheduled=[p.id for p in self.participants],
            metadata=SolutionMetadata(
                total_participants=len(self.participants),
                scheduled_participants=0,
                strategy="optimal",
                status=status,
                compute_time_ms=solve_time * 1000,
            ),
        )
