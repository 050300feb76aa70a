"""Assignment Service - teacher assignments, submissions and grading"""
import logging
from bson import ObjectId
from coachhub.config.settings import (
    ASSIGNMENT_TYPES, LATE_POLICIES, SUBMISSION_STATUSES, GRADED_STATUSES, DEFAULT_MAX_GRADE
)
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.gamification.gamification_service import GamificationService
from coachhub.services.parent.notification_service import NotificationService
from coachhub.services.teacher.class_service import ClassService
from coachhub.services.teacher.student_service import StudentService
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

def status_for_now(due_date) -> str:
    """late once the due date has passed, else submitted"""
    return "late" if due_date and utc_now() > due_date else "submitted"

class AssignmentService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def _validate_allow_late(self, raw) -> dict:
        if raw is None:
            return {"policy": "no", "penaltyPercent": 0}
        if not isinstance(raw, dict):
            raise ValidationError("allowLate must be an object")
        return {
            "policy": ValidationUtils.validate_enum(raw.get("policy", "no"), LATE_POLICIES, "allowLate.policy"),
            "penaltyPercent": ValidationUtils.validate_number_range(
                raw.get("penaltyPercent", 0), 0, 100, "allowLate.penaltyPercent"
            )
        }

    def _validate_fields(self, data: dict) -> dict:
        """Per-field checks for whatever keys the payload carries"""
        fields = {}
        if "title" in data:
            fields["title"] = ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            )
        if "description" in data:
            fields["description"] = ValidationUtils.validate_max_length(data["description"] or "", 2000, "description")
        if "type" in data:
            fields["type"] = ValidationUtils.validate_enum(data["type"], ASSIGNMENT_TYPES, "type")
        if "classId" in data:
            fields["classId"] = ValidationUtils.validate_optional_object_id(data["classId"], "classId")
        if "studentId" in data:
            fields["studentId"] = ValidationUtils.validate_optional_object_id(data["studentId"], "studentId")
        if "dueDate" in data:
            fields["dueDate"] = ValidationUtils.parse_date(data["dueDate"], "dueDate")
        for name in ("publishAt", "closeAt"):
            if name in data:
                fields[name] = ValidationUtils.parse_date(data[name], name) if data[name] else None
        if "maxGrade" in data:
            fields["maxGrade"] = ValidationUtils.validate_number_range(data["maxGrade"], 1, 100, "maxGrade")
        if "allowLate" in data:
            fields["allowLate"] = self._validate_allow_late(data["allowLate"])
        if "maxAttempts" in data:
            if data["maxAttempts"] in (None, ""):
                fields["maxAttempts"] = None
            else:
                attempts = ValidationUtils.safe_int_conversion(data["maxAttempts"], 0)
                if attempts < 1:
                    raise ValidationError("maxAttempts must be at least 1")
                fields["maxAttempts"] = attempts
        if "tags" in data:
            if not isinstance(data["tags"], list):
                raise ValidationError("tags must be a list")
            fields["tags"] = [t.strip() for t in data["tags"] if isinstance(t, str) and t.strip()]
        if "subject" in data:
            fields["subject"] = ValidationUtils.validate_max_length(data["subject"] or "", 100, "subject")
        if "attachments" in data:
            if not isinstance(data["attachments"], list):
                raise ValidationError("attachments must be a list")
            fields["attachments"] = data["attachments"]
        return fields

    def _check_consistency(self, assignment: dict, teacher_id: ObjectId) -> None:
        """Cross-field rules on the merged document"""
        if assignment["type"] == "class":
            if not assignment.get("classId"):
                raise ValidationError("classId is required for class assignments")
            ClassService().get_visible_class(assignment["classId"], teacher_id)
            assignment["studentId"] = None
        else:
            if not assignment.get("studentId"):
                raise ValidationError("studentId is required for individual assignments")
            StudentService().get_visible_student(assignment["studentId"], teacher_id)
            assignment["classId"] = None

        if assignment.get("closeAt") and assignment["closeAt"] < assignment["dueDate"]:
            raise ValidationError("closeAt cannot be before dueDate")

    def _get_owned(self, assignment_id: str, teacher_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(assignment_id, "assignment id")
        assignment = self.repo_factory.get_assignment_repo().find_by_id(oid)
        if not assignment:
            raise NotFoundError("Assignment not found")
        if assignment["teacherId"] != teacher_id:
            raise ForbiddenError("You do not own this assignment")
        return assignment

    def list_assignments(self, teacher_id: ObjectId, class_id: str = None, student_id: str = None) -> list:
        query = {}
        if class_id:
            query["classId"] = ValidationUtils.validate_object_id(class_id, "classId")
        if student_id:
            query["studentId"] = ValidationUtils.validate_object_id(student_id, "studentId")

        assignments = self.repo_factory.get_assignment_repo().find_for_teacher(teacher_id, query)
        submission_repo = self.repo_factory.get_submission_repo()
        for assignment in assignments:
            submissions = submission_repo.find_for_assignment(assignment["_id"])
            assignment["submissionCount"] = len(submissions)
            assignment["gradedCount"] = len([s for s in submissions if s.get("status") in GRADED_STATUSES])
        return sanitize_mongo_document(assignments)

    def list_student_assignments(self, student_id: str, teacher_id: ObjectId) -> dict:
        """The teacher's assignments visible to one student, each with that student's submission"""
        student = StudentService().get_visible_student(student_id, teacher_id)
        class_ids = self.repo_factory.get_class_repo().class_ids_for_student(student["_id"])
        assignments = [
            a for a in self.repo_factory.get_assignment_repo().find_for_student(student["_id"], class_ids)
            if a["teacherId"] == teacher_id
        ]
        submissions = {
            s["assignmentId"]: s for s in self.repo_factory.get_submission_repo().find_for_student(
                student["_id"], [a["_id"] for a in assignments]
            )
        }
        for assignment in assignments:
            assignment["submission"] = submissions.get(assignment["_id"])
        return sanitize_mongo_document({
            "student": {
                "_id": student["_id"],
                "firstName": student.get("firstName", ""),
                "lastName": student.get("lastName", ""),
                "email": student.get("email", "")
            },
            "assignments": assignments
        })

    def get_assignment(self, assignment_id: str, teacher_id: ObjectId) -> dict:
        return sanitize_mongo_document(self._get_owned(assignment_id, teacher_id))

    def create_assignment(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "title", "type", "dueDate")
        fields = self._validate_fields(data)
        assignment = {
            "title": fields["title"],
            "description": fields.get("description", ""),
            "type": fields["type"],
            "classId": fields.get("classId"),
            "studentId": fields.get("studentId"),
            "teacherId": teacher_id,
            "attachments": fields.get("attachments", []),
            "dueDate": fields["dueDate"],
            "maxGrade": fields.get("maxGrade", DEFAULT_MAX_GRADE),
            "publishAt": fields.get("publishAt"),
            "closeAt": fields.get("closeAt"),
            "allowLate": fields.get("allowLate", self._validate_allow_late(None)),
            "maxAttempts": fields.get("maxAttempts"),
            "tags": fields.get("tags", []),
            "subject": fields.get("subject", "")
        }
        self._check_consistency(assignment, teacher_id)
        created = self.repo_factory.get_assignment_repo().insert(assignment)
        logger.info(f"Assignment '{created['title']}' created by teacher {teacher_id}")
        return sanitize_mongo_document(created)

    def update_assignment(self, assignment_id: str, teacher_id: ObjectId, data: dict) -> dict:
        existing = self._get_owned(assignment_id, teacher_id)
        fields = self._validate_fields(data)
        if not fields:
            raise ValidationError("Nothing to update")

        merged = {**existing, **fields}
        self._check_consistency(merged, teacher_id)
        fields["classId"], fields["studentId"] = merged["classId"], merged["studentId"]
        updated = self.repo_factory.get_assignment_repo().update_fields(existing["_id"], fields)
        return sanitize_mongo_document(updated)

    def delete_assignment(self, assignment_id: str, teacher_id: ObjectId) -> dict:
        assignment = self._get_owned(assignment_id, teacher_id)
        removed = self.repo_factory.get_submission_repo().delete_for_assignment(assignment["_id"])
        self.repo_factory.get_assignment_repo().delete(assignment["_id"])
        logger.info(f"Assignment {assignment_id} deleted with {removed} submissions")
        return {"message": "Assignment deleted", "id": assignment_id, "deletedSubmissions": removed}

    def list_submissions(self, assignment_id: str, teacher_id: ObjectId) -> list:
        assignment = self._get_owned(assignment_id, teacher_id)
        submissions = self.repo_factory.get_submission_repo().find_for_assignment(assignment["_id"])
        students = {
            s["_id"]: s for s in self.repo_factory.get_user_repo().find_by_ids(
                [sub["studentId"] for sub in submissions], {"firstName": 1, "lastName": 1, "username": 1}
            )
        }
        for submission in submissions:
            submission["studentName"] = full_name(students.get(submission["studentId"]))
        return sanitize_mongo_document(submissions)

    def _get_owned_submission(self, submission_id: str, teacher_id: ObjectId):
        oid = ValidationUtils.validate_object_id(submission_id, "submission id")
        submission = self.repo_factory.get_submission_repo().find_by_id(oid)
        if not submission:
            raise NotFoundError("Submission not found")
        assignment = self.repo_factory.get_assignment_repo().find_by_id(submission["assignmentId"])
        if not assignment:
            raise NotFoundError("Assignment not found")
        if assignment["teacherId"] != teacher_id:
            raise ForbiddenError("You do not own this assignment")
        return submission, assignment

    def grade_submission(self, submission_id: str, teacher_id: ObjectId, data: dict) -> dict:
        submission, assignment = self._get_owned_submission(submission_id, teacher_id)
        max_grade = assignment.get("maxGrade", DEFAULT_MAX_GRADE)

        fields = {}
        grade = None
        if data.get("grade") is not None:
            grade = ValidationUtils.validate_number_range(data["grade"], 0, 100, "grade")
            if grade > max_grade:
                raise ValidationError(f"grade cannot exceed maxGrade ({max_grade})")
            fields["grade"] = grade
        if "teacherFeedback" in data:
            fields["teacherFeedback"] = ValidationUtils.validate_max_length(
                data["teacherFeedback"] or "", 2000, "teacherFeedback"
            )
        if data.get("status"):
            fields["status"] = ValidationUtils.validate_enum(data["status"], SUBMISSION_STATUSES, "status")
        elif grade is not None:
            fields["status"] = "graded"
        if not fields:
            raise ValidationError("Nothing to grade")

        fields["gradedAt"] = utc_now()
        fields["maxGrade"] = max_grade
        updated = self.repo_factory.get_submission_repo().update_fields(submission["_id"], fields)

        newly_graded = (
            updated.get("status") in GRADED_STATUSES
            and updated.get("grade") is not None
            and submission.get("status") not in GRADED_STATUSES
        )
        if newly_graded:
            GamificationService().award_for_grade(submission["studentId"], updated["grade"])
            NotificationService().notify_parents(
                submission["studentId"], "assignment_graded",
                f"Assignment graded: {assignment['title']}",
                f"Your child received {updated['grade']}/{max_grade} on '{assignment['title']}'.",
                "medium"
            )
        return sanitize_mongo_document(updated)

    def reopen_submission(self, submission_id: str, teacher_id: ObjectId) -> dict:
        submission, assignment = self._get_owned_submission(submission_id, teacher_id)
        updated = self.repo_factory.get_submission_repo().update_fields(submission["_id"], {
            "grade": None,
            "teacherFeedback": None,
            "gradedAt": None,
            "status": status_for_now(assignment.get("dueDate"))
        })
        return sanitize_mongo_document(updated)
