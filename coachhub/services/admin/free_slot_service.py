"""Free Teacher Slot Service - first teachers get a free year"""
import logging
from datetime import timedelta
from typing import Optional
from bson import ObjectId
from coachhub.config.settings import FREE_TEACHER_SLOTS, FREE_SLOT_DAYS, FREE_SLOT_PLAN
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.admin.subscription_service import SubscriptionService
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now

logger = logging.getLogger(__name__)

class FreeSlotService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def get_slot_summary(self) -> dict:
        slot_repo = self.repo_factory.get_free_slot_repo()
        used = slot_repo.count_active()
        recent = slot_repo.find_recent(5)
        teachers = {
            t["_id"]: t for t in self.repo_factory.get_user_repo().find_by_ids(
                [s["teacherId"] for s in recent], {"firstName": 1, "lastName": 1}
            )
        }
        return sanitize_mongo_document({
            "totalSlots": FREE_TEACHER_SLOTS,
            "usedSlots": used,
            "availableSlots": max(0, FREE_TEACHER_SLOTS - used),
            "recentAssignments": [
                {
                    "slotNumber": slot["slotNumber"],
                    "teacherName": full_name(teachers.get(slot["teacherId"]), "Unknown Teacher"),
                    "assignedAt": slot["assignedAt"]
                }
                for slot in recent
            ]
        })

    def assign_slot(self, teacher_id: ObjectId) -> Optional[dict]:
        """Give the teacher the lowest free slot and a free-trial subscription; None when all are taken"""
        slot_repo = self.repo_factory.get_free_slot_repo()
        if slot_repo.find_by_teacher(teacher_id):
            return None

        used = set(slot_repo.used_slot_numbers())
        free_numbers = [n for n in range(1, FREE_TEACHER_SLOTS + 1) if n not in used]
        if not free_numbers:
            logger.info("No free teacher slots left")
            return None

        now = utc_now()
        slot = slot_repo.insert({
            "slotNumber": free_numbers[0],
            "teacherId": teacher_id,
            "assignedAt": now,
            "expiresAt": now + timedelta(days=FREE_SLOT_DAYS),
            "isActive": True
        })
        SubscriptionService().create_free_trial(teacher_id, FREE_SLOT_PLAN, now)
        logger.info(f"Free slot {slot['slotNumber']} assigned to teacher {teacher_id}")
        return slot
