"""
Reservation and settlement engine.

Keeps ``Material.reserved`` equal to the sum of ``budgeted_quantity`` over
every PENDING project line referencing the material, and rejects any
project mutation that would break physical feasibility.

Every operation validates fully before mutating the state it is given.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime

from stockledger.core.entities.material import Material
from stockledger.core.entities.project import Project, ProjectMaterial, ProjectStatus
from stockledger.core.exceptions import (
    BudgetLineNotFoundError,
    DuplicateLineError,
    ExceedsEffectiveAvailabilityError,
    InsufficientAvailabilityError,
    InvalidStateTransitionError,
    ValidationError,
)
from stockledger.core.services.state import (
    LedgerChange,
    LedgerState,
    QuantityLine,
    new_id,
    require_quantity,
)


@dataclass(frozen=True)
class ReservationDrift:
    """A material whose stored reservation disagreed with pending budgets."""

    material_id: str
    stored: int
    expected: int


def reservations_by_material(projects: Iterable[Project]) -> dict[str, int]:
    """Sum budgeted quantities of PENDING projects per material."""
    totals: dict[str, int] = defaultdict(int)
    for project in projects:
        if not project.is_pending:
            continue
        for line in project.materials:
            totals[line.material_id] += line.budgeted_quantity
    return dict(totals)


def _check_capacity(material: Material, quantity: int) -> None:
    if quantity > material.available:
        raise InsufficientAvailabilityError(
            material_id=material.id or "",
            material_name=material.name,
            requested=quantity,
            available=material.available,
        )


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, "must not be blank", value)
    return value.strip()


class ReservationEngine:
    """
    Project lifecycle state machine: PENDING (editable) -> COMPLETED (frozen).

    Pure service -- no I/O. The caller owns the ``LedgerState`` and decides
    whether and where to persist the returned ``LedgerChange``.
    """

    def create_project(
        self,
        state: LedgerState,
        description: str,
        client: str,
        initial_budget: Sequence[QuantityLine],
        start_date: date | None = None,
        estimated_days: int = 1,
    ) -> tuple[Project, LedgerChange]:
        """Create a PENDING project and reserve its whole budget at once."""
        description = _require_text("description", description)
        client = _require_text("client", client)
        if (
            isinstance(estimated_days, bool)
            or not isinstance(estimated_days, int)
            or estimated_days <= 0
        ):
            raise ValidationError("estimated_days", "must be a positive integer", estimated_days)
        if not initial_budget:
            raise ValidationError("materials", "a project needs at least one budget line")

        # 1. Validate every line before reserving anything
        resolved: list[tuple[Material, int]] = []
        seen: set[str] = set()
        for line in initial_budget:
            quantity = require_quantity(line.quantity, material_id=line.material_id)
            material = state.material(line.material_id)
            if line.material_id in seen:
                raise DuplicateLineError(line.material_id)
            seen.add(line.material_id)
            _check_capacity(material, quantity)
            resolved.append((material, quantity))

        # 2. Reserve
        project = Project(
            id=new_id("prj"),
            description=description,
            client=client,
            start_date=start_date or date.today(),
            estimated_days=estimated_days,
            materials=[
                ProjectMaterial(
                    material_id=material.id or "",
                    material_name=material.name,
                    material_unit=material.unit,
                    budgeted_quantity=quantity,
                    actual_quantity=quantity,
                )
                for material, quantity in resolved
            ],
        )
        change = LedgerChange(projects={project.id})  # type: ignore[arg-type]
        for material, quantity in resolved:
            material.reserved += quantity
            material.touch()
            change.materials.add(material.id)  # type: ignore[arg-type]

        state.projects[project.id] = project  # type: ignore[index]
        return project, change

    def add_budget_line(
        self,
        state: LedgerState,
        project_id: str,
        material_id: str,
        quantity: int,
    ) -> tuple[Project, LedgerChange]:
        """Budget a new material into a pending project."""
        project = state.project(project_id)
        self._require_pending(project, "edit the budget of")
        if project.get_line(material_id) is not None:
            raise DuplicateLineError(material_id, project_id)
        quantity = require_quantity(quantity, material_id=material_id)
        material = state.material(material_id)
        _check_capacity(material, quantity)

        project.materials.append(
            ProjectMaterial(
                material_id=material_id,
                material_name=material.name,
                material_unit=material.unit,
                budgeted_quantity=quantity,
                actual_quantity=quantity,
            )
        )
        material.reserved += quantity
        material.touch()
        return project, LedgerChange(materials={material_id}, projects={project_id})

    def remove_budget_line(
        self,
        state: LedgerState,
        project_id: str,
        material_id: str,
    ) -> tuple[Project, LedgerChange]:
        """Drop a budget line and release its reservation."""
        project = state.project(project_id)
        self._require_pending(project, "edit the budget of")
        line = project.get_line(material_id)
        if line is None:
            raise BudgetLineNotFoundError(project_id, material_id)

        project.materials = [m for m in project.materials if m.material_id != material_id]
        change = LedgerChange(projects={project_id})

        material = state.materials.get(material_id)
        if material is not None:
            # Floor at zero even if stored data has drifted
            material.reserved = max(0, material.reserved - line.budgeted_quantity)
            material.touch()
            change.materials.add(material_id)
        return project, change

    def update_actual_quantity(
        self,
        state: LedgerState,
        project_id: str,
        material_id: str,
        new_actual: int,
    ) -> tuple[Project, LedgerChange]:
        """Replan the expected usage of a line. Stock and reservations are untouched."""
        project = state.project(project_id)
        self._require_pending(project, "replan")
        new_actual = require_quantity(new_actual, allow_zero=True, material_id=material_id)
        line = project.get_line(material_id)
        if line is None:
            raise BudgetLineNotFoundError(project_id, material_id)

        line.actual_quantity = new_actual
        return project, LedgerChange(projects={project_id})

    def complete_project(
        self,
        state: LedgerState,
        project_id: str,
        final_materials: Sequence[ProjectMaterial | QuantityLine] | None = None,
        now: datetime | None = None,
    ) -> tuple[Project, LedgerChange]:
        """
        Settle a pending project.

        Each live budget line consumes its final actual quantity from stock
        and releases its own budgeted reservation. The final quantity may not
        exceed ``stock - (reserved - own budgeted)``: what is left once every
        other project's reservation is honoured.

        Args:
            state: Draft ledger state.
            project_id: Project to complete.
            final_materials: Final quantities per material. Lines of the live
                budget missing here consume 0. ``None`` uses the project's
                current replanned quantities.
            now: Completion timestamp (defaults to the current UTC time).
        """
        project = state.project(project_id)
        self._require_pending(project, "complete")
        actuals, order = self._final_actuals(project, final_materials)

        # 1. Validate every line against its effective availability
        for line in project.materials:
            actual = actuals.get(line.material_id, 0)
            if actual == 0:
                continue
            material = state.material(line.material_id)
            reserved_by_others = material.reserved - line.budgeted_quantity
            effective_cap = material.stock - reserved_by_others
            if actual > effective_cap:
                raise ExceedsEffectiveAvailabilityError(
                    material_id=line.material_id,
                    material_name=material.name,
                    requested=actual,
                    effective_cap=effective_cap,
                    project_id=project_id,
                )

        # 2. Consume stock and release the project's own reservations
        change = LedgerChange(projects={project_id})
        for line in project.materials:
            # A line consuming nothing may name a material deleted since budgeting
            material = state.materials.get(line.material_id)
            if material is None:
                continue
            actual = actuals.get(line.material_id, 0)
            material.stock = max(0, material.stock - actual)
            material.reserved = max(0, material.reserved - line.budgeted_quantity)
            material.touch()
            change.materials.add(line.material_id)

        # 3. Freeze the project with its final quantities
        live = {line.material_id: line for line in project.materials}
        project.materials = [
            live[material_id].model_copy(update={"actual_quantity": actuals[material_id]})
            for material_id in order
        ]
        project.status = ProjectStatus.COMPLETED
        project.completion_date = now or datetime.now(UTC)
        return project, change

    def reconcile(self, state: LedgerState) -> list[ReservationDrift]:
        """Recompute every reservation from pending budgets, fixing drift in place."""
        expected = reservations_by_material(state.projects.values())
        drifts: list[ReservationDrift] = []
        for material_id, material in state.materials.items():
            target = expected.get(material_id, 0)
            if material.reserved != target:
                drifts.append(
                    ReservationDrift(
                        material_id=material_id,
                        stored=material.reserved,
                        expected=target,
                    )
                )
                material.reserved = target
                material.touch()
        return drifts

    @staticmethod
    def _require_pending(project: Project, operation: str) -> None:
        if project.status != ProjectStatus.PENDING:
            raise InvalidStateTransitionError(
                project_id=project.id or "",
                status=project.status.value,
                operation=operation,
            )

    @staticmethod
    def _final_actuals(
        project: Project,
        final_materials: Sequence[ProjectMaterial | QuantityLine] | None,
    ) -> tuple[dict[str, int], list[str]]:
        """Map material ID -> final quantity, plus the order of the final list."""
        if final_materials is None:
            return (
                {line.material_id: line.actual_quantity for line in project.materials},
                [line.material_id for line in project.materials],
            )

        actuals: dict[str, int] = {}
        order: list[str] = []
        for final in final_materials:
            raw = (
                final.actual_quantity
                if isinstance(final, ProjectMaterial)
                else final.quantity
            )
            quantity = require_quantity(raw, allow_zero=True, material_id=final.material_id)
            if project.get_line(final.material_id) is None:
                raise BudgetLineNotFoundError(project.id or "", final.material_id)
            if final.material_id in actuals:
                raise DuplicateLineError(final.material_id, project.id)
            actuals[final.material_id] = quantity
            order.append(final.material_id)
        return actuals, order

