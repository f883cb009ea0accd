"""Resume analysis backend. Only a canned implementation exists for now."""

from dataclasses import dataclass, field

MOCK_EXTRACTED_TEXT = "Extracted text from resume (mock implementation)"


@dataclass
class ProcessedResume:
    skills: list[str] = field(default_factory=list)
    work_experiences: list[dict] = field(default_factory=list)
    education: list[dict] = field(default_factory=list)


class MockAIClient:
    def extract_text(self, file_path: str) -> str:
        return MOCK_EXTRACTED_TEXT

    def process_resume(self, extracted_text: str) -> ProcessedResume:
        return ProcessedResume(
            skills=["Go", "Python", "JavaScript"],
            work_experiences=[
                {
                    "company_name": "Tech Company",
                    "position": "Software Developer",
                    "description": "Developed web applications",
                    "start_date": "2020-01-01",
                    "end_date": "2023-12-31",
                    "is_current": False,
                },
            ],
            education=[
                {
                    "institution": "University",
                    "degree": "Bachelor",
                    "field_of_study": "Computer Science",
                    "start_date": "2016-01-01",
                    "end_date": "2019-12-31",
                    "is_current": False,
                    "gpa": 3.8,
                },
            ],
        )
