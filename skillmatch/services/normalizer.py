import math
from typing import Any, List, Optional

from skillmatch.models.models import SkillProfile

# Oracle output may use the camelCase keys of the extraction prompt or snake_case.
_LIST_FIELDS = {
    "technical_skills": ("technicalSkills", "technical_skills"),
    "frameworks": ("frameworks",),
    "languages": ("languages",),
    "tools": ("tools",),
    "soft_skills": ("softSkills", "soft_skills"),
    "education": ("education",),
    "certifications": ("certifications",),
}


def _pick(data: dict, keys) -> Any:
    for k in keys:
        if k in data:
            return data[k]
    return None


def _as_list(x: Any) -> List[str]:
    if x is None:
        return []
    if isinstance(x, str):
        # split on commas/semicolons
        parts = [p.strip() for p in x.replace(";", ",").split(",")]
        return [p for p in parts if p]
    if isinstance(x, (list, tuple, set)):
        return [str(t).strip() for t in x if t is not None and str(t).strip()]
    return []


def _as_number(x: Any) -> Optional[float]:
    if isinstance(x, bool) or x is None:
        return None
    if isinstance(x, list):
        # sometimes the model returns ["6"]; take first
        x = x[0] if x else None
    try:
        value = float(x) if x not in (None, "") else None
    except (TypeError, ValueError):
        return None
    # "NaN" and "inf" parse as floats
    return value if value is not None and math.isfinite(value) else None


def normalize_profile(raw: Any) -> SkillProfile:
    """Coerce an untrusted extraction result into a SkillProfile."""
    if isinstance(raw, SkillProfile):
        return raw
    data = raw if isinstance(raw, dict) else {}

    fields = {name: _as_list(_pick(data, keys)) for name, keys in _LIST_FIELDS.items()}

    role = _pick(data, ("currentRole", "current_role"))
    role = role.strip() if isinstance(role, str) else None

    return SkillProfile(
        **fields,
        years_of_experience=_as_number(_pick(data, ("yearsOfExperience", "years_of_experience"))),
        current_role=role or None,
    )


def combined_skills(profile: SkillProfile) -> List[str]:
    """Skills used for matching: technical skills, frameworks and tools, in that order."""
    return [*profile.technical_skills, *profile.frameworks, *profile.tools]
