from datetime import datetime, timezone
from typing import Any
from bson.objectid import ObjectId
from mongoengine import Document, DictField, DateTimeField


class BaseDocument(Document):
    metadata = DictField(default=dict, null=False)
    created_at = DateTimeField(default=lambda: datetime.now(timezone.utc), null=False)
    updated_at = DateTimeField(default=lambda: datetime.now(timezone.utc), null=False)

    meta = {
        "abstract": True,
    }

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._sanitize_value(v) for v in value]
        if isinstance(value, dict):
            return {k: self._sanitize_value(v) for k, v in value.items()}
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, ObjectId):
            return str(value)
        return value

    def to_output(self, fields=None, exclude=None) -> dict[str, Any]:
        """JSON-safe dict of the document's fields, with `id` as a string."""
        data: dict[str, Any] = {}
        exclude = exclude or ()
        fields = fields or self._fields.keys()

        for field in fields:
            if field in exclude or field == "id":
                continue
            data[field] = self._sanitize_value(getattr(self, field))

        data["id"] = str(self.id)
        return data

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now(timezone.utc)
        return super().save(*args, **kwargs)
