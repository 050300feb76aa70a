"""Profile Service - self-service profile edits and teacher account removal"""
import logging
from bson import ObjectId
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ConflictError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.auth.account_service import AccountService
from coachhub.utils.cache.cache_utils import api_cache, ADMIN_STATS_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.security.security_utils import check_password, hash_password
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50

def _name(value, field_name: str) -> str:
    value = ValidationUtils.validate_non_empty_string(value, field_name).strip()
    return ValidationUtils.validate_max_length(value, NAME_MAX_LENGTH, field_name)

class ProfileService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def _get_account(self, user_id: ObjectId) -> dict:
        user = self.repo_factory.get_user_repo().find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, user_id: ObjectId) -> dict:
        profile = self.repo_factory.get_user_repo().find_public(user_id)
        if not profile:
            raise NotFoundError("User not found")
        return sanitize_mongo_document(profile)

    def update_student_profile(self, student_id: ObjectId, data: dict) -> dict:
        """Students may change their name and phone only"""
        fields = {}
        for name in ("firstName", "lastName"):
            if name in data:
                fields[name] = _name(data[name], name)
        if "phone" in data:
            fields["phone"] = (data["phone"] or "").strip()
        if not fields:
            raise ValidationError("Nothing to update")

        self._get_account(student_id)
        user_repo = self.repo_factory.get_user_repo()
        user_repo.update_fields(student_id, fields)
        return sanitize_mongo_document(user_repo.find_public(student_id))

    def update_teacher_profile(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "firstName", "lastName", "email")
        teacher = self._get_account(teacher_id)
        email = ValidationUtils.validate_email(data["email"])

        user_repo = self.repo_factory.get_user_repo()
        holder = user_repo.find_by_email(email)
        if (holder and holder["_id"] != teacher_id) or self.repo_factory.get_parent_repo().find_by_email(email):
            raise ConflictError("Email is already in use")

        fields = {
            "firstName": _name(data["firstName"], "firstName"),
            "lastName": _name(data["lastName"], "lastName"),
            "email": email,
            "phone": (data.get("phone") or "").strip(),
            "address": (data.get("address") or "").strip()
        }
        if data.get("newPassword"):
            if not data.get("currentPassword"):
                raise ValidationError("currentPassword is required to set a new password")
            if not check_password(data["currentPassword"], teacher.get("password")):
                raise ValidationError("Current password is incorrect")
            fields["password"] = hash_password(AccountService.validate_password(data["newPassword"]))

        user_repo.update_fields(teacher_id, fields)
        logger.info(f"Teacher {teacher_id} updated their profile")
        return sanitize_mongo_document(user_repo.find_public(teacher_id))

    def delete_teacher_account(self, teacher_id: ObjectId, data: dict) -> dict:
        """
        Remove the teacher and what they own: assignments with their
        submissions, goals and classes. Students keep their accounts.
        """
        ValidationUtils.validate_required_fields(data, "password")
        teacher = self._get_account(teacher_id)
        if not check_password(data["password"], teacher.get("password")):
            raise ValidationError("Password is incorrect")

        assignment_repo = self.repo_factory.get_assignment_repo()
        submissions = self.repo_factory.get_submission_repo().delete_for_assignments(
            assignment_repo.ids_for_teacher(teacher_id)
        )
        removed = {
            "assignments": assignment_repo.delete_for_teacher(teacher_id),
            "submissions": submissions,
            "goals": self.repo_factory.get_goal_repo().delete_for_teacher(teacher_id),
            "classes": self.repo_factory.get_class_repo().delete_for_teacher(teacher_id)
        }
        self.repo_factory.get_user_repo().delete(teacher_id)
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        logger.info(f"Teacher account {teacher_id} deleted: {removed}")
        return {"message": "Account deleted", "deleted": removed}
