import json
from dataclasses import fields, is_dataclass


class RecordEncoder(json.JSONEncoder):
    """Encodes extracted records, omitting unset optional fields."""

    def default(self, obj):
        if is_dataclass(obj):
            return {
                f.name: getattr(obj, f.name)
                for f in fields(obj)
                if getattr(obj, f.name) is not None
            }
        return json.JSONEncoder.default(self, obj)


def dump_records(records) -> str:
    return json.dumps(records, indent=2, cls=RecordEncoder)
