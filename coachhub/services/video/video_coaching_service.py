"""Video Coaching Service - scheduling, joining and reviewing video sessions"""
import logging
from typing import Dict, List
from bson import ObjectId
from coachhub.config.settings import (
    VIDEO_SESSION_TYPES, VIDEO_SESSION_STATUSES, VIDEO_JOINABLE_STATUSES, VideoConfig, ROLE_TEACHER, ROLE_STUDENT
)
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.services.teacher.class_service import ClassService
from coachhub.services.teacher.student_service import StudentService
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.security.security_utils import generate_meeting_id
from coachhub.utils.time.timeutils import utc_now, minutes_between
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

def meeting_url(meeting_id: str) -> str:
    return f"https://{VideoConfig.MEETING_DOMAIN}/{meeting_id}"

def participant(user_id: ObjectId, role: str) -> Dict:
    return {"userId": user_id, "role": role, "joinedAt": None, "leftAt": None, "isActive": False}

class VideoCoachingService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    def _get(self, session_id: str) -> Dict:
        oid = ValidationUtils.validate_object_id(session_id, "session id")
        session = self.repo_factory.get_video_session_repo().find_by_id(oid)
        if not session:
            raise NotFoundError("Session not found")
        return session

    @staticmethod
    def _find_participant(session: Dict, user_id: ObjectId):
        return next((p for p in session.get("participants", []) if p["userId"] == user_id), None)

    def _get_as_participant(self, session_id: str, user_id: ObjectId) -> Dict:
        session = self._get(session_id)
        if not self._find_participant(session, user_id):
            raise ForbiddenError("You are not a participant of this session")
        return session

    @staticmethod
    def _validate_duration(value) -> int:
        return int(ValidationUtils.validate_number_range(
            value, VideoConfig.MIN_DURATION, VideoConfig.MAX_DURATION, "duration"
        ))

    def create_session(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "title", "scheduledAt")
        session_type = ValidationUtils.validate_enum(data.get("type", "one_on_one"), VIDEO_SESSION_TYPES, "type")

        participants = [participant(teacher_id, ROLE_TEACHER)]
        student_id = None
        if data.get("studentId"):
            student_id = StudentService().get_visible_student(data["studentId"], teacher_id)["_id"]
            participants.append(participant(student_id, ROLE_STUDENT))
        elif session_type in ("one_on_one", "consultation"):
            raise ValidationError("studentId is required for this session type")

        class_id = None
        if session_type == "class":
            if not data.get("classId"):
                raise ValidationError("classId is required for class sessions")
            cls = ClassService().get_visible_class(data["classId"], teacher_id)
            class_id = cls["_id"]
            known = {p["userId"] for p in participants}
            participants.extend(participant(sid, ROLE_STUDENT) for sid in cls.get("students", []) if sid not in known)

        meeting_id = generate_meeting_id()
        session = {
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 1000, "description"),
            "teacherId": teacher_id,
            "studentId": student_id,
            "classId": class_id,
            "type": session_type,
            "status": "scheduled",
            "scheduledAt": ValidationUtils.parse_date(data["scheduledAt"], "scheduledAt"),
            "duration": self._validate_duration(data.get("duration", 60)),
            "meetingId": meeting_id,
            "meetingUrl": meeting_url(meeting_id),
            "participants": participants,
            "notes": [],
            "feedback": [],
            "resources": data.get("resources") or [],
            "startedAt": None,
            "endedAt": None,
            "actualDuration": None
        }
        created = self.repo_factory.get_video_session_repo().insert(session)
        logger.info(f"Video session {meeting_id} scheduled by teacher {teacher_id}")
        return sanitize_mongo_document(created)

    def list_teacher_sessions(self, teacher_id: ObjectId, status: str = None) -> list:
        query = {"status": ValidationUtils.validate_enum(status, VIDEO_SESSION_STATUSES, "status")} if status else {}
        return sanitize_mongo_document(self.repo_factory.get_video_session_repo().find_for_teacher(teacher_id, query))

    def get_session(self, session_id: str, user_id: ObjectId) -> dict:
        return sanitize_mongo_document(self._get_as_participant(session_id, user_id))

    def update_session(self, session_id: str, teacher_id: ObjectId, data: dict) -> dict:
        """Edit, cancel or reschedule a session"""
        session = self._get(session_id)
        if session["teacherId"] != teacher_id:
            raise ForbiddenError("Only the session teacher can update it")

        fields = {}
        if "title" in data:
            fields["title"] = ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            )
        if "description" in data:
            fields["description"] = ValidationUtils.validate_max_length(data["description"] or "", 1000, "description")
        if "duration" in data:
            fields["duration"] = self._validate_duration(data["duration"])
        if "resources" in data:
            if not isinstance(data["resources"], list):
                raise ValidationError("resources must be a list")
            fields["resources"] = data["resources"]
        if "scheduledAt" in data:
            fields["scheduledAt"] = ValidationUtils.parse_date(data["scheduledAt"], "scheduledAt")
            fields["previousScheduledAt"] = session["scheduledAt"]
        if "status" in data:
            fields["status"] = ValidationUtils.validate_enum(data["status"], VIDEO_SESSION_STATUSES, "status")
        if not fields:
            raise ValidationError("Nothing to update")
        if session["status"] in ("completed", "cancelled") and fields.get("status") not in (None, session["status"]):
            raise ValidationError(f"A {session['status']} session cannot change status")

        return sanitize_mongo_document(self.repo_factory.get_video_session_repo().update_fields(session["_id"], fields))

    def join_session(self, session_id: str, user_id: ObjectId) -> dict:
        session = self._get(session_id)
        if session["status"] not in VIDEO_JOINABLE_STATUSES:
            raise ValidationError("Session is not active")
        if not self._find_participant(session, user_id):
            raise ForbiddenError("You are not a participant of this session")

        joined = self.repo_factory.get_video_session_repo().mark_joined(
            session["_id"], user_id, VIDEO_JOINABLE_STATUSES
        )
        if not joined:
            raise ValidationError("Session is not active")
        return {"meetingUrl": joined["meetingUrl"], "meetingId": joined["meetingId"], "status": joined["status"]}

    def leave_session(self, session_id: str, user_id: ObjectId) -> dict:
        """The last active participant to leave completes an in-progress session"""
        session = self._get_as_participant(session_id, user_id)
        session_repo = self.repo_factory.get_video_session_repo()
        session_repo.mark_left(session["_id"], user_id)

        completed = session_repo.complete_if_idle(session["_id"])
        if completed:
            participants = completed["participants"]
            joined = [p["joinedAt"] for p in participants if p.get("joinedAt")]
            left = [p["leftAt"] for p in participants if p.get("leftAt")]
            duration = minutes_between(min(joined), max(left)) if joined and left else 0
            session = session_repo.update_fields(session["_id"], {"actualDuration": duration})
            logger.info(f"Video session {session['_id']} completed after {duration} minutes")
        else:
            session = session_repo.find_by_id(session["_id"])
        return {"status": session["status"], "actualDuration": session.get("actualDuration")}

    def add_note(self, session_id: str, user_id: ObjectId, data: dict) -> dict:
        session = self._get_as_participant(session_id, user_id)
        content = ValidationUtils.validate_max_length(
            ValidationUtils.validate_non_empty_string(data.get("content"), "content"), 2000, "content"
        )
        note = {"authorId": user_id, "content": content, "createdAt": utc_now()}
        self.repo_factory.get_video_session_repo().push_note(session["_id"], note)
        return sanitize_mongo_document(note)

    def add_feedback(self, session_id: str, user_id: ObjectId, data: dict) -> dict:
        session = self._get_as_participant(session_id, user_id)
        rating = ValidationUtils.validate_number_range(data.get("rating"), 1, 5, "rating")

        if data.get("toUserId"):
            to_user = ValidationUtils.validate_object_id(data["toUserId"], "toUserId")
            if not self._find_participant(session, to_user):
                raise ValidationError("Feedback must address a session participant")
        else:
            to_user = session["teacherId"] if user_id != session["teacherId"] else session.get("studentId")
        if not to_user or to_user == user_id:
            raise ValidationError("toUserId is required")

        entry = {
            "fromUserId": user_id,
            "toUserId": to_user,
            "rating": rating,
            "comment": ValidationUtils.validate_max_length(data.get("comment") or "", 1000, "comment"),
            "createdAt": utc_now()
        }
        self.repo_factory.get_video_session_repo().upsert_feedback(session["_id"], entry)
        return sanitize_mongo_document(entry)

    def get_upcoming_sessions(self, user_id: ObjectId) -> list:
        return sanitize_mongo_document(self.repo_factory.get_video_session_repo().find_upcoming(
            user_id, utc_now(), VideoConfig.UPCOMING_LIMIT
        ))

    def get_student_overview(self, student_id: ObjectId) -> dict:
        recent = [
            s for s in self.repo_factory.get_video_session_repo().find_for_participant(student_id, limit=20)
            if s["status"] in ("completed", "cancelled")
        ][:10]
        return {
            "upcoming": self.get_upcoming_sessions(student_id),
            "recent": sanitize_mongo_document(recent)
        }

    def get_stats(self, user_id: ObjectId) -> dict:
        sessions: List[Dict] = self.repo_factory.get_video_session_repo().find_for_participant(user_id)
        now = utc_now()
        ratings = [
            f["rating"] for s in sessions for f in s.get("feedback", []) if f.get("toUserId") == user_id
        ]
        return {
            "totalSessions": len(sessions),
            "completedSessions": len([s for s in sessions if s["status"] == "completed"]),
            "upcomingSessions": len([s for s in sessions if s["status"] == "scheduled" and s["scheduledAt"] >= now]),
            "cancelledSessions": len([s for s in sessions if s["status"] == "cancelled"]),
            "totalMinutes": sum(s.get("actualDuration") or 0 for s in sessions),
            "averageRating": round(sum(ratings) / len(ratings), 1) if ratings else 0
        }
