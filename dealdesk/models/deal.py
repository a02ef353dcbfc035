"""Deal model.

Pipeline: new -> qualified -> proposal -> negotiation -> won | lost

Only the win transition is driven by the app (see deal_service.win_deal);
it is also the only change ever made to a deal after creation.
"""

import uuid

from dealdesk.extensions import db


class Deal(db.Model):
    __tablename__ = "deals"

    # -- Known stages --
    STAGES = ["new", "qualified", "proposal", "negotiation", "won", "lost"]
    WON = "won"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    organization_id = db.Column(
        db.String(36), db.ForeignKey("organizations.id"), nullable=True, index=True
    )
    title = db.Column(db.String(255), nullable=True)
    stage = db.Column(db.String(50), default="new", nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    organization = db.relationship("Organization", back_populates="deals")
    projects = db.relationship("Project", back_populates="deal", lazy="dynamic")

    @property
    def is_won(self):
        return self.stage == self.WON

    def __repr__(self):
        return f"<Deal {self.title} ({self.stage})>"
