from typing import Sequence

import numpy as np

from skillmatch.models.models import SkillGap, SkillProfile
from skillmatch.services.normalizer import combined_skills


def reconcile(resume: SkillProfile, job: SkillProfile) -> SkillGap:
    """
    Split the job's combined skills into matched / partial / missing.

    Job order and duplicates are kept. An exact case-insensitive hit wins over
    a partial one; partial means substring containment in either direction
    ("React" vs "React.js").
    """
    resume_set = {s.lower() for s in combined_skills(resume)}

    gap = SkillGap()
    for skill in combined_skills(job):
        s = skill.lower()
        if s in resume_set:
            gap.matched.append(skill)
        elif any(r in s or s in r for r in resume_set):
            gap.partial.append(skill)
        else:
            gap.missing.append(skill)
    return gap


def to_percentage(score: float) -> float:
    # cosine in [-1, 1] -> [0, 100]; orthogonal vectors land on 50
    percentage = round(((score + 1) / 2) * 100, 1)
    return max(0.0, min(100.0, percentage))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / den
