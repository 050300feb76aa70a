"""Submission Service - student assignments, submit and resubmit"""
import logging
from bson import ObjectId
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.gamification.gamification_service import GamificationService
from coachhub.services.parent.notification_service import NotificationService
from coachhub.services.teacher.assignment_service import status_for_now
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class SubmissionService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def _get_visible_assignment(self, assignment_id: str, student_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(assignment_id, "assignment id")
        class_ids = self.repo_factory.get_class_repo().class_ids_for_student(student_id)
        assignment = self.repo_factory.get_assignment_repo().find_visible(oid, student_id, class_ids)
        if not assignment:
            raise NotFoundError("Assignment not found")
        return assignment

    @staticmethod
    def _content(data: dict):
        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("content is required")
        attachments = data.get("attachments") or []
        if not isinstance(attachments, list):
            raise ValidationError("attachments must be a list")
        return content.strip(), attachments

    def list_assignments(self, student_id: ObjectId) -> list:
        """Published assignments for the student with their submission status"""
        now = utc_now()
        class_ids = self.repo_factory.get_class_repo().class_ids_for_student(student_id)
        assignments = [
            a for a in self.repo_factory.get_assignment_repo().find_for_student(student_id, class_ids)
            if not a.get("publishAt") or a["publishAt"] <= now
        ]
        submissions = {
            s["assignmentId"]: s for s in self.repo_factory.get_submission_repo().find_for_student(
                student_id, [a["_id"] for a in assignments]
            )
        }
        for assignment in assignments:
            submission = submissions.get(assignment["_id"])
            assignment["submissionStatus"] = submission["status"] if submission else "not_started"
            assignment["submission"] = submission
        return sanitize_mongo_document(assignments)

    def get_assignment(self, assignment_id: str, student_id: ObjectId) -> dict:
        assignment = self._get_visible_assignment(assignment_id, student_id)
        assignment["submission"] = self.repo_factory.get_submission_repo().find_one_for(assignment["_id"], student_id)
        return sanitize_mongo_document(assignment)

    def submit(self, assignment_id: str, student_id: ObjectId, data: dict) -> dict:
        content, attachments = self._content(data)
        assignment = self._get_visible_assignment(assignment_id, student_id)

        now = utc_now()
        policy = (assignment.get("allowLate") or {}).get("policy", "no")
        if assignment.get("publishAt") and now < assignment["publishAt"]:
            raise ForbiddenError("Assignment is not published yet")
        if assignment.get("closeAt") and now > assignment["closeAt"] and policy == "no":
            raise ForbiddenError("Assignment is closed")

        submission_repo = self.repo_factory.get_submission_repo()
        if submission_repo.find_one_for(assignment["_id"], student_id):
            raise ValidationError("Assignment already submitted")

        submission = submission_repo.insert({
            "assignmentId": assignment["_id"],
            "studentId": student_id,
            "status": status_for_now(assignment.get("dueDate")),
            "content": content,
            "attachments": attachments,
            "submittedAt": now,
            "attempt": 1,
            "versions": [{"attempt": 1, "content": content, "attachments": attachments, "submittedAt": now}],
            "grade": None,
            "maxGrade": assignment.get("maxGrade"),
            "teacherFeedback": None,
            "gradedAt": None
        })
        self._after_submit(student_id, assignment)
        return sanitize_mongo_document(submission)

    def resubmit(self, assignment_id: str, student_id: ObjectId, data: dict) -> dict:
        content, attachments = self._content(data)
        assignment = self._get_visible_assignment(assignment_id, student_id)
        submission_repo = self.repo_factory.get_submission_repo()
        submission = submission_repo.find_one_for(assignment["_id"], student_id)
        if not submission:
            raise ValidationError("No submission to resubmit")
        if submission.get("status") == "graded":
            raise ValidationError("Graded submissions cannot be resubmitted")

        now = utc_now()
        policy = (assignment.get("allowLate") or {}).get("policy", "no")
        if assignment.get("publishAt") and now < assignment["publishAt"]:
            raise ForbiddenError("Assignment is not published yet")
        if assignment.get("closeAt") and now > assignment["closeAt"] and policy != "always":
            raise ForbiddenError("Assignment is closed")

        attempt = submission.get("attempt", 1) + 1
        if assignment.get("maxAttempts") and attempt > assignment["maxAttempts"]:
            raise ForbiddenError("Maximum attempts reached")

        versions = submission.get("versions", []) + [
            {"attempt": attempt, "content": content, "attachments": attachments, "submittedAt": now}
        ]
        updated = submission_repo.update_fields(submission["_id"], {
            "status": status_for_now(assignment.get("dueDate")),
            "content": content,
            "attachments": attachments,
            "submittedAt": now,
            "attempt": attempt,
            "versions": versions
        })
        return sanitize_mongo_document(updated)

    def _after_submit(self, student_id: ObjectId, assignment: dict) -> None:
        gamification = GamificationService()
        gamification.update_streak(student_id, "assignment")
        gamification.check_achievements(student_id)
        NotificationService().notify_parents(
            student_id, "assignment_completed",
            f"Assignment submitted: {assignment['title']}",
            f"Your child submitted '{assignment['title']}'.",
            "low"
        )
