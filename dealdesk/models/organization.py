"""Organization model.

Root CRM entity. Contacts, deals and projects all point back at one.
"""

import uuid

from dealdesk.extensions import db


class Organization(db.Model):
    __tablename__ = "organizations"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=False)
    industry = db.Column(db.String(100), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    contacts = db.relationship("Contact", back_populates="organization", lazy="dynamic")
    deals = db.relationship("Deal", back_populates="organization", lazy="dynamic")

    def __repr__(self):
        return f"<Organization {self.name}>"
