"""Custom JSON encoding utilities"""
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime

class CardEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles record dataclasses and datetime objects"""
    def default(self, obj):
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)

def json_dumps(obj, **kwargs):
    """Helper function to dump JSON with dataclass and datetime handling"""
    return json.dumps(obj, cls=CardEncoder, **kwargs)
