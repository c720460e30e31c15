"""
Study service API - lessons, study records and per-contact progress.
"""

from ministrycrm.api.client import ServiceClient, parse
from ministrycrm.logging_config import log_call
from ministrycrm.models import (
    Lesson,
    LessonList,
    LessonPayload,
    Study,
    StudyList,
    StudyPayload,
    StudyStats,
)


class StudiesAPI:
    """Wrapper over the study service."""

    def __init__(self, client: ServiceClient):
        self.client = client

    # Lessons ------------------------------------------------------------------

    @log_call
    def list_lessons(self) -> LessonList:
        return parse(LessonList, self.client.get('/lessons'))

    @log_call
    def create_lesson(self, payload: LessonPayload) -> Lesson:
        return parse(Lesson, self.client.post('/lessons', json=payload.to_json()))

    @log_call
    def update_lesson(self, lesson_id: int, payload: LessonPayload) -> Lesson:
        return parse(Lesson, self.client.put(f'/lessons/{lesson_id}', json=payload.to_json()))

    @log_call
    def delete_lesson(self, lesson_id: int) -> None:
        self.client.delete(f'/lessons/{lesson_id}')

    # Studies ------------------------------------------------------------------

    @log_call
    def list_studies(self, contact_id: int) -> StudyList:
        return parse(StudyList, self.client.get(f'/contacts/{contact_id}/studies'))

    @log_call
    def get_study_stats(self, contact_id: int) -> StudyStats:
        return parse(StudyStats, self.client.get(f'/contacts/{contact_id}/study-stats'))

    @log_call
    def get_study(self, study_id: int) -> Study:
        return parse(Study, self.client.get(f'/studies/{study_id}'))

    @log_call
    def create_study(self, payload: StudyPayload) -> Study:
        return parse(Study, self.client.post('/studies', json=payload.to_json()))

    @log_call
    def update_study(self, study_id: int, payload: StudyPayload) -> Study:
        return parse(Study, self.client.put(f'/studies/{study_id}', json=payload.to_json()))

    @log_call
    def delete_study(self, study_id: int) -> None:
        self.client.delete(f'/studies/{study_id}')
