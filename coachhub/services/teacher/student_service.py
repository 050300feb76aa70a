"""Student Service - teacher-managed students and their stats"""
import logging
from bson import ObjectId
from coachhub.config.settings import ROLE_STUDENT, SUBMITTED_STATUSES, GRADED_STATUSES
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ConflictError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.auth.account_service import AccountService
from coachhub.services.teacher.class_service import ClassService
from coachhub.utils.cache.cache_utils import api_cache, ADMIN_STATS_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.security.security_utils import hash_password
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

def percentage(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0

class StudentService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def get_visible_student(self, student_id, teacher_id: ObjectId) -> dict:
        """A student in one of the teacher's classes or created by the teacher, else 404"""
        oid = ValidationUtils.validate_object_id(student_id, "student id")
        student = self.repo_factory.get_user_repo().find_public(oid)
        if not student or student.get("role") != ROLE_STUDENT:
            raise NotFoundError("Student not found")
        if student.get("createdBy") != teacher_id and \
                oid not in self.repo_factory.get_class_repo().student_ids_for_teacher(teacher_id):
            raise NotFoundError("Student not found")
        return student

    def visible_student_ids(self, teacher_id: ObjectId) -> list:
        class_ids = self.repo_factory.get_class_repo().student_ids_for_teacher(teacher_id)
        return [s["_id"] for s in self.repo_factory.get_user_repo().find_students(class_ids, created_by=teacher_id)]

    def list_students(self, teacher_id: ObjectId) -> list:
        class_repo = self.repo_factory.get_class_repo()
        classes = class_repo.find_for_teacher(teacher_id)
        class_names = {}
        for cls in classes:
            for sid in cls.get("students", []):
                class_names.setdefault(sid, cls["name"])

        students = self.repo_factory.get_user_repo().find_students(list(class_names), created_by=teacher_id)
        for student in students:
            student["className"] = class_names.get(student["_id"])
        return sanitize_mongo_document(students)

    def create_student(self, teacher_id: ObjectId, data: dict) -> dict:
        class_id = data.get("classId")
        cls = ClassService().get_visible_class(class_id, teacher_id) if class_id else None

        student = AccountService().create_user(ROLE_STUDENT, data, created_by=teacher_id)
        if cls:
            self.repo_factory.get_class_repo().add_student(cls["_id"], student["_id"])
            student["className"] = cls["name"]
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        return sanitize_mongo_document(student)

    def get_student(self, student_id: str, teacher_id: ObjectId) -> dict:
        student = self.get_visible_student(student_id, teacher_id)
        student["classes"] = [
            {"_id": cls["_id"], "name": cls["name"]}
            for cls in self.repo_factory.get_class_repo().find_for_student(student["_id"])
        ]
        return sanitize_mongo_document(student)

    def update_student(self, student_id: str, teacher_id: ObjectId, data: dict) -> dict:
        student = self.get_visible_student(student_id, teacher_id)
        user_repo = self.repo_factory.get_user_repo()

        fields = {}
        for name in ("firstName", "lastName"):
            if name in data:
                fields[name] = ValidationUtils.validate_non_empty_string(data[name], name)
        if "phone" in data:
            fields["phone"] = (data["phone"] or "").strip()
        if "email" in data:
            email = ValidationUtils.validate_email(data["email"])
            existing = user_repo.find_by_email(email)
            if existing and existing["_id"] != student["_id"]:
                raise ConflictError("Email is already in use")
            fields["email"] = email
        if data.get("password"):
            fields["password"] = hash_password(AccountService.validate_password(data["password"]))
        if not fields:
            raise ValidationError("Nothing to update")

        user_repo.update_fields(student["_id"], fields)
        return sanitize_mongo_document(user_repo.find_public(student["_id"]))

    def compute_student_stats(self, student_id: ObjectId) -> dict:
        """Assignment and goal counts for one student"""
        class_ids = self.repo_factory.get_class_repo().class_ids_for_student(student_id)
        assignments = self.repo_factory.get_assignment_repo().find_for_student(student_id, class_ids)
        submissions = self.repo_factory.get_submission_repo().find_for_student(
            student_id, [a["_id"] for a in assignments]
        )

        completed = [s for s in submissions if s.get("status") in SUBMITTED_STATUSES]
        grades = [s["grade"] for s in submissions if s.get("status") in GRADED_STATUSES and s.get("grade") is not None]
        goal_repo = self.repo_factory.get_goal_repo()

        return {
            "totalAssignments": len(assignments),
            "completedAssignments": len(completed),
            "gradedAssignments": len(grades),
            "averageGrade": round(sum(grades) / len(grades), 1) if grades else 0,
            "completionRate": percentage(len(completed), len(assignments)),
            "goalsAchieved": goal_repo.count_for_student(student_id, "completed"),
            "totalGoals": goal_repo.count_for_student(student_id)
        }

    def get_student_stats(self, student_id: str, teacher_id: ObjectId) -> dict:
        student = self.get_visible_student(student_id, teacher_id)
        return self.compute_student_stats(student["_id"])

    def get_teacher_stats(self, teacher_id: ObjectId) -> dict:
        class_repo = self.repo_factory.get_class_repo()
        student_ids = self.visible_student_ids(teacher_id)
        assignment_ids = self.repo_factory.get_assignment_repo().ids_for_teacher(teacher_id)
        submission_repo = self.repo_factory.get_submission_repo()

        submitted = submission_repo.count_by_status(assignment_ids, SUBMITTED_STATUSES)
        graded = submission_repo.count_by_status(assignment_ids, GRADED_STATUSES)
        return {
            "totalStudents": len(student_ids),
            "totalClasses": class_repo.count_for_teacher(teacher_id),
            "totalAssignments": len(assignment_ids),
            "submittedAssignments": submitted,
            "gradedAssignments": graded,
            "pendingGrading": max(0, submitted - graded),
            "gradingRate": percentage(graded, submitted),
            "totalParents": self.repo_factory.get_parent_repo().count_active_with_children(student_ids)
        }
