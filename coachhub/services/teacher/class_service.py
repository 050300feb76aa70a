"""Class Service - Business Logic Layer (SoC)"""
import logging
from typing import List
from bson import ObjectId
from coachhub.config.settings import MAX_CO_TEACHERS, ROLE_TEACHER, ROLE_STUDENT
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.cache.cache_utils import api_cache, ADMIN_STATS_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

class ClassService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def _validate_co_teachers(self, raw, owner_id: ObjectId) -> List[ObjectId]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ValidationError("coTeachers must be a list")
        co_teachers = list(dict.fromkeys(ValidationUtils.validate_object_id(t, "co-teacher id") for t in raw))
        if len(co_teachers) > MAX_CO_TEACHERS:
            raise ValidationError(f"A class can have at most {MAX_CO_TEACHERS} co-teachers")
        if owner_id in co_teachers:
            raise ValidationError("The class owner cannot be a co-teacher")
        found = self.repo_factory.get_user_repo().find_by_ids(co_teachers, {"role": 1})
        if len([u for u in found if u.get("role") == ROLE_TEACHER]) != len(co_teachers):
            raise ValidationError("Every co-teacher must be an existing teacher")
        return co_teachers

    def _validate_students(self, raw) -> List[ObjectId]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ValidationError("students must be a list")
        students = list(dict.fromkeys(ValidationUtils.validate_object_id(s, "student id") for s in raw))
        found = self.repo_factory.get_user_repo().find_by_ids(students, {"role": 1})
        if len([u for u in found if u.get("role") == ROLE_STUDENT]) != len(students):
            raise ValidationError("Every student id must belong to a student")
        return students

    def get_visible_class(self, class_id: str, teacher_id: ObjectId) -> dict:
        """Class the teacher owns or co-teaches"""
        oid = ValidationUtils.validate_object_id(class_id, "class id")
        cls = self.repo_factory.get_class_repo().find_by_id(oid)
        if not cls or (cls["teacherId"] != teacher_id and teacher_id not in cls.get("coTeachers", [])):
            raise NotFoundError("Class not found")
        return cls

    def _get_owned_class(self, class_id: str, teacher_id: ObjectId) -> dict:
        cls = self.get_visible_class(class_id, teacher_id)
        if cls["teacherId"] != teacher_id:
            raise ForbiddenError("Only the class owner can modify this class")
        return cls

    def list_classes(self, teacher_id: ObjectId) -> list:
        classes = self.repo_factory.get_class_repo().find_for_teacher(teacher_id)
        for cls in classes:
            cls["studentCount"] = len(cls.get("students", []))
            cls["isOwner"] = cls["teacherId"] == teacher_id
        return sanitize_mongo_document(classes)

    def get_class(self, class_id: str, teacher_id: ObjectId) -> dict:
        cls = self.get_visible_class(class_id, teacher_id)
        cls["studentDetails"] = self.repo_factory.get_user_repo().find_by_ids(
            cls.get("students", []), {"firstName": 1, "lastName": 1, "username": 1, "email": 1}
        )
        return sanitize_mongo_document(cls)

    def create_class(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "name")
        name = ValidationUtils.validate_max_length(
            ValidationUtils.validate_non_empty_string(data["name"], "name"), 100, "name"
        )
        cls = {
            "name": name,
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 500, "description"),
            "teacherId": teacher_id,
            "coTeachers": self._validate_co_teachers(data.get("coTeachers"), teacher_id),
            "students": self._validate_students(data.get("students"))
        }
        created = self.repo_factory.get_class_repo().insert(cls)
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        logger.info(f"Class '{name}' created by teacher {teacher_id}")
        return sanitize_mongo_document(created)

    def update_class(self, class_id: str, teacher_id: ObjectId, data: dict) -> dict:
        cls = self._get_owned_class(class_id, teacher_id)
        fields = {}
        if "name" in data:
            fields["name"] = ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["name"], "name"), 100, "name"
            )
        if "description" in data:
            fields["description"] = ValidationUtils.validate_max_length(data["description"] or "", 500, "description")
        if "coTeachers" in data:
            fields["coTeachers"] = self._validate_co_teachers(data["coTeachers"], teacher_id)
        if "students" in data:
            fields["students"] = self._validate_students(data["students"])
        if not fields:
            raise ValidationError("Nothing to update")
        return sanitize_mongo_document(self.repo_factory.get_class_repo().update_fields(cls["_id"], fields))

    def delete_class(self, class_id: str, teacher_id: ObjectId) -> dict:
        cls = self._get_owned_class(class_id, teacher_id)
        self.repo_factory.get_class_repo().delete(cls["_id"])
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        return {"message": "Class deleted", "id": class_id}
