from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JournalEntry(db.Model):
    __tablename__ = "journal_entries"

    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)

    reflection = db.Column(db.Text, nullable=False)
    mood_score = db.Column(db.Float, nullable=False)      # -1 to 1
    source = db.Column(db.String(20), nullable=False, default="heuristic")  # "llm" or "heuristic"

    # naive UTC
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    def created_at_ms(self) -> int:
        return int(self.created_at.replace(tzinfo=timezone.utc).timestamp() * 1000)

    def to_dict(self):
        return {
            "id": self.id,
            "text": self.text,
            "reflection": self.reflection,
            "moodScore": float(self.mood_score),
            "source": self.source,
            "createdAt": self.created_at.isoformat() + "Z" if self.created_at else None,
        }

    def __repr__(self):
        return f"<JournalEntry id={self.id}>"
