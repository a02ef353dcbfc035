"""Project models.

- Project: delivery work spawned when a deal is won.
- Task: starter checklist items created alongside the project.

Neither has a creation path of its own; both come out of the win cascade.
"""

import uuid

from dealdesk.extensions import db


class Project(db.Model):
    __tablename__ = "projects"

    STATUSES = ["planning", "active", "on_hold", "done"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    organization_id = db.Column(
        db.String(36), db.ForeignKey("organizations.id"), nullable=True, index=True
    )
    deal_id = db.Column(
        db.String(36), db.ForeignKey("deals.id"), nullable=True, index=True
    )
    title = db.Column(db.String(255), nullable=True)
    status = db.Column(
        db.String(50), default="planning", nullable=False
    )  # planning | active | on_hold | done
    start_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    deal = db.relationship("Deal", back_populates="projects")
    tasks = db.relationship(
        "Task",
        back_populates="project",
        lazy="dynamic",
        order_by="Task.position",
    )

    def __repr__(self):
        return f"<Project {self.title} ({self.status})>"


class Task(db.Model):
    __tablename__ = "tasks"

    STATUSES = ["todo", "in_progress", "done"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id"), nullable=False, index=True
    )
    title = db.Column(db.String(255), nullable=False)
    # Index into the starter-task template; rows from one flush share created_at
    position = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(
        db.String(50), default="todo", nullable=False
    )  # todo | in_progress | done
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    project = db.relationship("Project", back_populates="tasks")

    def __repr__(self):
        return f"<Task {self.title} ({self.status})>"
