"""Unit tests for Project entities."""

from datetime import date

import pytest
from pydantic import ValidationError

from stockledger.core.entities import Project, ProjectMaterial, ProjectStatus


class TestProjectMaterial:
    """Tests for ProjectMaterial."""

    def test_actual_defaults_to_zero(self):
        line = ProjectMaterial(material_id="mat-1", budgeted_quantity=5)
        assert line.actual_quantity == 0

    def test_budgeted_must_be_positive(self):
        with pytest.raises(ValidationError):
            ProjectMaterial(material_id="mat-1", budgeted_quantity=0)

    def test_actual_may_be_zero_but_not_negative(self):
        ProjectMaterial(material_id="mat-1", budgeted_quantity=5, actual_quantity=0)
        with pytest.raises(ValidationError):
            ProjectMaterial(material_id="mat-1", budgeted_quantity=5, actual_quantity=-1)


class TestProject:
    """Tests for Project."""

    def test_defaults(self):
        project = Project(description="B-100", client="ACME")
        assert project.status == ProjectStatus.PENDING
        assert project.is_pending
        assert project.start_date == date.today()
        assert project.estimated_days == 1
        assert project.materials == []
        assert project.completion_date is None

    def test_estimated_days_must_be_positive(self):
        with pytest.raises(ValidationError):
            Project(description="B-100", client="ACME", estimated_days=0)

    def test_get_line_and_budgeted_for(self, pending_project: Project):
        assert pending_project.get_line("mat-cable").budgeted_quantity == 30
        assert pending_project.get_line("mat-other") is None
        assert pending_project.budgeted_for("mat-cable") == 30
        assert pending_project.budgeted_for("mat-other") == 0

    def test_status_values(self):
        assert ProjectStatus.PENDING.value == "pending"
        assert ProjectStatus.COMPLETED.value == "completed"
