EXTRACT_PROMPT = """You are an expert HR analyst. Extract skills from the document below.
Return ONLY valid JSON matching this exact structure:

{{
  "technicalSkills": ["skill1", "skill2"],
  "frameworks": ["React", "Node.js", "Express"],
  "languages": ["English", "Spanish"],
  "tools": ["Git", "Docker", "AWS"],
  "softSkills": ["Leadership", "Communication"],
  "yearsOfExperience": 5,
  "currentRole": "Senior Software Engineer",
  "education": ["BS Computer Science"],
  "certifications": ["AWS Certified"]
}}

Rules:
- technicalSkills: Programming languages, databases, cloud platforms
- frameworks: Libraries and frameworks (React, Angular, Django, etc.)
- languages: Spoken/written languages
- tools: Development tools, CI/CD, IDEs
- softSkills: Non-technical skills
- yearsOfExperience: Total years (number or null)
- currentRole: Most recent job title
- If unknown, use null or an empty list.

DOCUMENT:
{doc}
"""

QUESTIONS_PROMPT = """You are an expert technical interviewer.
Generate 5-7 interview questions for a {job_title} position.

Context:
- Candidate's matched skills: {matched}
- Skills needing assessment (gaps): {missing}
- Partially matched skills: {partial}

Generate questions that:
1. Assess depth of knowledge in matched skills
2. Explore learning ability for missing skills
3. Include behavioral questions about soft skills
4. Mix technical and situational questions

Return JSON: {{"questions": ["Question 1?", "Question 2?"]}}
"""

RECOMMENDATIONS_PROMPT = """You are a career coach.
Provide 3-5 actionable recommendations for a candidate applying to a {job_title} position.

Missing skills: {missing}
Partial skills (need improvement): {partial}

Recommendations should:
1. Suggest specific courses or certifications
2. Recommend practical projects to build skills
3. Provide resources for learning
4. Be actionable and realistic

Return JSON: {{"recommendations": ["Recommendation 1", "Recommendation 2"]}}
"""
