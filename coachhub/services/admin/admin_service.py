"""Admin Service - teachers, parents and platform stats"""
import logging
from coachhub.config.settings import ROLE_TEACHER, ROLE_STUDENT
from coachhub.exceptions.exceptions import NotFoundError, ValidationError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.auth.account_service import AccountService
from coachhub.services.teacher.student_service import StudentService
from coachhub.utils.cache.cache_utils import api_cache, generate_key, ADMIN_STATS_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def get_stats(self) -> dict:
        cache_key = generate_key(ADMIN_STATS_CACHE_PREFIX)
        cached = api_cache.get(cache_key)
        if cached:
            return cached

        user_repo = self.repo_factory.get_user_repo()
        stats = {
            "activeTeachers": user_repo.count_active(ROLE_TEACHER),
            "activeStudents": user_repo.count_active(ROLE_STUDENT),
            "pendingApplications": self.repo_factory.get_application_repo().count_pending(),
            "totalClasses": self.repo_factory.get_class_repo().count({}),
            "activeSubscriptions": self.repo_factory.get_subscription_repo().count_active(utc_now()),
            "totalParents": self.repo_factory.get_parent_repo().count({})
        }
        api_cache.put(cache_key, stats)
        return stats

    def _get_teacher(self, teacher_id: str) -> dict:
        oid = ValidationUtils.validate_object_id(teacher_id, "teacher id")
        teacher = self.repo_factory.get_user_repo().find_public(oid)
        if not teacher or teacher.get("role") != ROLE_TEACHER:
            raise NotFoundError("Teacher not found")
        return teacher

    def list_teachers(self) -> list:
        class_repo = self.repo_factory.get_class_repo()
        subscription_repo = self.repo_factory.get_subscription_repo()
        now = utc_now()

        teachers = self.repo_factory.get_user_repo().find_by_role(ROLE_TEACHER)
        for teacher in teachers:
            teacher["classCount"] = class_repo.count_for_teacher(teacher["_id"])
            teacher["studentCount"] = len(class_repo.student_ids_for_teacher(teacher["_id"]))
            teacher["subscription"] = subscription_repo.find_current_for_teacher(teacher["_id"], now)
        return sanitize_mongo_document(teachers)

    def get_teacher_detail(self, teacher_id: str) -> dict:
        teacher = self._get_teacher(teacher_id)
        class_repo = self.repo_factory.get_class_repo()
        classes = class_repo.find_for_teacher(teacher["_id"])
        students = self.repo_factory.get_user_repo().find_students(
            class_repo.student_ids_for_teacher(teacher["_id"]), created_by=teacher["_id"]
        )
        return sanitize_mongo_document({
            "teacher": teacher,
            "classes": classes,
            "students": students,
            "subscription": self.repo_factory.get_subscription_repo().find_current_for_teacher(teacher["_id"], utc_now())
        })

    def get_teacher_classes(self, teacher_id: str) -> list:
        teacher = self._get_teacher(teacher_id)
        classes = self.repo_factory.get_class_repo().find_for_teacher(teacher["_id"])
        for cls in classes:
            cls["studentCount"] = len(cls.get("students", []))
            cls["isOwner"] = cls["teacherId"] == teacher["_id"]
        return sanitize_mongo_document(classes)

    def _class_names(self, teacher_id) -> dict:
        """First class name per student across the teacher's classes"""
        names = {}
        for cls in self.repo_factory.get_class_repo().find_for_teacher(teacher_id):
            for sid in cls.get("students", []):
                names.setdefault(sid, cls["name"])
        return names

    def get_teacher_students(self, teacher_id: str) -> list:
        """Students in the teacher's classes, with the class each belongs to"""
        teacher = self._get_teacher(teacher_id)
        class_names = self._class_names(teacher["_id"])
        students = self.repo_factory.get_user_repo().find_students(list(class_names))
        for student in students:
            student["className"] = class_names.get(student["_id"])
        return sanitize_mongo_document(students)

    def get_teacher_parents(self, teacher_id: str) -> list:
        """Parents of students in the teacher's classes; only those children are listed"""
        teacher = self._get_teacher(teacher_id)
        class_names = self._class_names(teacher["_id"])
        if not class_names:
            return []

        parents = self.repo_factory.get_parent_repo().find_by_children(list(class_names))
        children = {
            c["_id"]: c for c in self.repo_factory.get_user_repo().find_by_ids(
                list(class_names), {"firstName": 1, "lastName": 1, "email": 1}
            )
        }
        for parent in parents:
            parent["childrenDetails"] = [
                {
                    "_id": cid,
                    "name": full_name(children.get(cid)),
                    "email": children.get(cid, {}).get("email", ""),
                    "className": class_names[cid]
                }
                for cid in parent.get("children", []) if cid in class_names
            ]
        return sanitize_mongo_document(parents)

    def get_teacher_stats(self, teacher_id: str) -> dict:
        teacher = self._get_teacher(teacher_id)
        stats = StudentService().get_teacher_stats(teacher["_id"])
        stats["teacherName"] = full_name(teacher)
        return stats

    def create_teacher(self, data: dict) -> dict:
        teacher = AccountService().create_user(ROLE_TEACHER, data)
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        return sanitize_mongo_document(teacher)

    def toggle_teacher_status(self, teacher_id: str, data: dict) -> dict:
        oid = ValidationUtils.validate_object_id(teacher_id, "teacher id")
        if "isActive" not in data:
            raise ValidationError("isActive is required")
        is_active = ValidationUtils.parse_bool(data["isActive"], "isActive")

        user_repo = self.repo_factory.get_user_repo()
        user = user_repo.find_by_id(oid, {"role": 1})
        if not user:
            raise NotFoundError("Teacher not found")
        if user.get("role") != ROLE_TEACHER:
            raise ValidationError("User is not a teacher")

        user_repo.set_active(oid, is_active)
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        logger.info(f"Teacher {teacher_id} isActive={is_active}")
        return {"id": teacher_id, "isActive": is_active}

    def toggle_parent_status(self, parent_id: str, data: dict) -> dict:
        oid = ValidationUtils.validate_object_id(parent_id, "parent id")
        if "isActive" not in data:
            raise ValidationError("isActive is required")
        is_active = ValidationUtils.parse_bool(data["isActive"], "isActive")

        parent_repo = self.repo_factory.get_parent_repo()
        if not parent_repo.find_by_id(oid, {"_id": 1}):
            raise NotFoundError("Parent not found")
        parent_repo.set_active(oid, is_active)
        return {"id": parent_id, "isActive": is_active}

    def list_parents(self) -> list:
        return sanitize_mongo_document(self.repo_factory.get_parent_repo().find_all_public())
