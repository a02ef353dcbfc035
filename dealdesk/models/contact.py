"""Contact model.

A person, usually at an organization. Orphan contacts (no organization)
are allowed.
"""

import uuid

from dealdesk.extensions import db


class Contact(db.Model):
    __tablename__ = "contacts"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    organization_id = db.Column(
        db.String(36), db.ForeignKey("organizations.id"), nullable=True, index=True
    )
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    organization = db.relationship("Organization", back_populates="contacts")

    def __repr__(self):
        return f"<Contact {self.first_name} {self.last_name}>"
