"""Teacher Application Service - Business Logic Layer (SoC)"""
import logging
import re
from coachhub.config.settings import APPLICATION_STATUSES, ROLE_TEACHER
from coachhub.exceptions.exceptions import ValidationError, NotFoundError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.admin.free_slot_service import FreeSlotService
from coachhub.utils.cache.cache_utils import api_cache, ADMIN_STATS_CACHE_PREFIX
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.security.security_utils import hash_password, generate_temp_password
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

def parse_subjects(raw) -> list:
    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, str):
        items = raw.split(",")
    else:
        items = []
    return [s.strip() for s in items if isinstance(s, str) and s.strip()]

class ApplicationService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def submit_application(self, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "firstName", "lastName", "email", "phone")
        email = ValidationUtils.validate_email(data["email"])
        application_repo = self.repo_factory.get_application_repo()
        if application_repo.find_by_email(email):
            raise ValidationError("An application with this email already exists")

        application = {
            "firstName": ValidationUtils.validate_non_empty_string(data["firstName"], "firstName"),
            "lastName": ValidationUtils.validate_non_empty_string(data["lastName"], "lastName"),
            "email": email,
            "phone": str(data["phone"]).strip(),
            "experience": str(data.get("experience") or "").strip(),
            "subjects": parse_subjects(data.get("subjects")),
            "message": ValidationUtils.validate_max_length(data.get("message") or "", 2000, "message"),
            "status": "pending"
        }
        created = application_repo.insert(application)
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        logger.info(f"Teacher application received from {email}")
        return sanitize_mongo_document(created)

    def list_applications(self, status: str = None) -> list:
        if status:
            ValidationUtils.validate_enum(status, APPLICATION_STATUSES, "status")
        return sanitize_mongo_document(self.repo_factory.get_application_repo().find_filtered(status))

    def _get(self, application_id: str):
        oid = ValidationUtils.validate_object_id(application_id, "application id")
        application = self.repo_factory.get_application_repo().find_by_id(oid)
        if not application:
            raise NotFoundError("Application not found")
        return application

    def get_application(self, application_id: str) -> dict:
        return sanitize_mongo_document(self._get(application_id))

    def delete_application(self, application_id: str) -> dict:
        application = self._get(application_id)
        self.repo_factory.get_application_repo().delete(application["_id"])
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        return {"message": "Application deleted", "id": application_id}

    def _unique_username(self, first_name: str, last_name: str) -> str:
        """Teachers and parents share one login namespace"""
        base = re.sub(r"\s+", "", f"{first_name}.{last_name}".lower())
        user_repo = self.repo_factory.get_user_repo()
        parent_repo = self.repo_factory.get_parent_repo()
        username, counter = base, 1
        while user_repo.username_taken(username) or parent_repo.username_taken(username):
            username = f"{base}{counter}"
            counter += 1
        return username

    def approve_application(self, application_id: str, reviewer_id: str) -> dict:
        application = self._get(application_id)
        if application["status"] != "pending":
            raise ValidationError("Application has already been processed")

        user_repo = self.repo_factory.get_user_repo()
        if user_repo.find_by_email(application["email"]):
            raise ValidationError("A user with this email already exists")

        temp_password = generate_temp_password()
        teacher = user_repo.insert({
            "username": self._unique_username(application["firstName"], application["lastName"]),
            "email": application["email"],
            "password": hash_password(temp_password),
            "firstName": application["firstName"],
            "lastName": application["lastName"],
            "phone": application.get("phone", ""),
            "role": ROLE_TEACHER,
            "isActive": True,
            "subjects": application.get("subjects", [])
        })

        self.repo_factory.get_application_repo().update_fields(application["_id"], {
            "status": "approved",
            "reviewedAt": utc_now(),
            "reviewedBy": ValidationUtils.validate_optional_object_id(reviewer_id, "reviewer id"),
            "teacherId": teacher["_id"]
        })
        slot = FreeSlotService().assign_slot(teacher["_id"])
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        logger.info(f"Application {application_id} approved, teacher {teacher['username']} created")

        return sanitize_mongo_document({
            "message": "Application approved",
            "teacher": {
                "id": teacher["_id"],
                "username": teacher["username"],
                "email": teacher["email"],
                "firstName": teacher["firstName"],
                "lastName": teacher["lastName"]
            },
            "temporaryPassword": temp_password,
            "freeSlot": slot["slotNumber"] if slot else None
        })

    def reject_application(self, application_id: str, reviewer_id: str, reason: str = None) -> dict:
        application = self._get(application_id)
        if application["status"] != "pending":
            raise ValidationError("Application has already been processed")

        updated = self.repo_factory.get_application_repo().update_fields(application["_id"], {
            "status": "rejected",
            "reviewedAt": utc_now(),
            "reviewedBy": ValidationUtils.validate_optional_object_id(reviewer_id, "reviewer id"),
            "rejectionReason": ValidationUtils.validate_max_length(reason or "", 500, "reason")
        })
        api_cache.invalidate_prefix(ADMIN_STATS_CACHE_PREFIX)
        return sanitize_mongo_document(updated)
