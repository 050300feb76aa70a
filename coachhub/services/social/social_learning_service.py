"""Social Learning Service - study groups, sessions, posts, resources and challenges"""
import logging
from typing import Dict, List
from bson import ObjectId
from coachhub.config.settings import POST_TYPES, SESSION_LOCATION_TYPES, DEFAULT_GROUP_SIZE
from coachhub.exceptions.exceptions import ValidationError, NotFoundError, ForbiddenError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.formatting.json_utils import sanitize_mongo_document, full_name
from coachhub.utils.time.timeutils import utc_now
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

def member_ids(group: Dict) -> List[ObjectId]:
    return [m["studentId"] for m in group.get("members", [])]

def _string_list(value, field_name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be a list")
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]

class SocialLearningService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    # ---------- groups ----------

    def _get_group(self, group_id) -> Dict:
        oid = ValidationUtils.validate_object_id(group_id, "group id")
        group = self.repo_factory.get_study_group_repo().find_by_id(oid)
        if not group:
            raise NotFoundError("Study group not found")
        return group

    def _require_member(self, group: Dict, user_id: ObjectId) -> None:
        if user_id not in member_ids(group):
            raise ForbiddenError("You are not a member of this group")

    def _require_visible(self, group: Dict, user_id: ObjectId, is_teacher: bool = False) -> None:
        """Private groups are open to their members and to teachers only"""
        if not group.get("isPublic", True) and not is_teacher:
            self._require_member(group, user_id)

    def create_study_group(self, user_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "name")
        max_members = int(ValidationUtils.validate_number_range(
            data.get("maxMembers", DEFAULT_GROUP_SIZE), 2, 50, "maxMembers"
        ))
        group = {
            "name": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["name"], "name"), 100, "name"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 500, "description"),
            "subject": (data.get("subject") or "").strip(),
            "creatorId": user_id,
            "members": [{"studentId": user_id, "role": "admin", "joinedAt": utc_now()}],
            "maxMembers": max_members,
            "isPublic": ValidationUtils.parse_bool(data.get("isPublic", True), "isPublic"),
            "tags": _string_list(data.get("tags"), "tags")
        }
        created = self.repo_factory.get_study_group_repo().insert(group)
        logger.info(f"Study group '{group['name']}' created by {user_id}")
        return sanitize_mongo_document(created)

    def join_study_group(self, group_id: str, student_id: ObjectId) -> dict:
        group = self._get_group(group_id)
        if len(group.get("members", [])) >= group.get("maxMembers", DEFAULT_GROUP_SIZE):
            raise ValidationError("Group is full")
        if student_id in member_ids(group):
            raise ValidationError("Already a member of this group")
        if not group.get("isPublic", True):
            raise ForbiddenError("This group is private")

        if not self.repo_factory.get_study_group_repo().add_member(
                group["_id"], student_id, group.get("maxMembers", DEFAULT_GROUP_SIZE)):
            raise ValidationError("Group is full")
        return {"message": "Joined study group", "groupId": group_id}

    def leave_study_group(self, group_id: str, student_id: ObjectId) -> dict:
        group = self._get_group(group_id)
        if group["creatorId"] == student_id:
            raise ValidationError("The group creator cannot leave the group")
        if student_id not in member_ids(group):
            raise ValidationError("Not a member of this group")
        self.repo_factory.get_study_group_repo().remove_member(group["_id"], student_id)
        return {"message": "Left study group", "groupId": group_id}

    def get_study_group_details(self, group_id: str, user_id: ObjectId, is_teacher: bool = False) -> dict:
        group = self._get_group(group_id)
        self._require_visible(group, user_id, is_teacher)

        users = {
            u["_id"]: u for u in self.repo_factory.get_user_repo().find_by_ids(
                member_ids(group), {"firstName": 1, "lastName": 1, "username": 1}
            )
        }
        for member in group.get("members", []):
            member["name"] = full_name(users.get(member["studentId"]))

        group["isMember"] = user_id in member_ids(group)
        group["recentPosts"] = self.repo_factory.get_study_post_repo().find_for_groups([group["_id"]], limit=10)
        group["upcomingSessions"] = self.repo_factory.get_study_session_repo().find_upcoming_for_groups(
            [group["_id"]], utc_now()
        )
        group["resources"] = self.repo_factory.get_study_resource_repo().find_many({"groupId": group["_id"]}, limit=20)
        return sanitize_mongo_document(group)

    def search_study_groups(self, text: str = None, subject: str = None) -> list:
        return sanitize_mongo_document(self.repo_factory.get_study_group_repo().search(text, subject))

    def list_groups(self) -> list:
        return sanitize_mongo_document(self.repo_factory.get_study_group_repo().find_many({}, limit=50))

    # ---------- sessions ----------

    def create_study_session(self, group_id: str, user_id: ObjectId, data: dict) -> dict:
        group = self._get_group(group_id)
        self._require_member(group, user_id)
        ValidationUtils.validate_required_fields(data, "title", "scheduledFor")

        location = data.get("location") or {"type": "online", "details": ""}
        if not isinstance(location, dict):
            raise ValidationError("location must be an object")
        session = {
            "groupId": group["_id"],
            "hostId": user_id,
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 1000, "description"),
            "scheduledFor": ValidationUtils.parse_date(data["scheduledFor"], "scheduledFor"),
            "duration": int(ValidationUtils.validate_number_range(data.get("duration", 60), 15, 480, "duration")),
            "location": {
                "type": ValidationUtils.validate_enum(location.get("type", "online"), SESSION_LOCATION_TYPES, "location.type"),
                "details": (location.get("details") or "").strip()
            },
            "maxParticipants": int(ValidationUtils.validate_number_range(
                data.get("maxParticipants", group.get("maxMembers", DEFAULT_GROUP_SIZE)), 2, 50, "maxParticipants"
            )),
            "participants": [{"studentId": user_id, "status": "confirmed"}]
        }
        return sanitize_mongo_document(self.repo_factory.get_study_session_repo().insert(session))

    def join_study_session(self, session_id: str, student_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(session_id, "session id")
        session_repo = self.repo_factory.get_study_session_repo()
        session = session_repo.find_by_id(oid)
        if not session:
            raise NotFoundError("Study session not found")
        if any(p["studentId"] == student_id for p in session.get("participants", [])):
            raise ValidationError("Already joined this session")
        if len(session.get("participants", [])) >= session["maxParticipants"]:
            raise ValidationError("Session is full")
        if not session_repo.add_participant(oid, student_id, session["maxParticipants"]):
            raise ValidationError("Session is full")
        return {"message": "Joined study session", "sessionId": session_id}

    # ---------- posts ----------

    def create_post(self, user_id: ObjectId, data: dict, is_teacher: bool = False) -> dict:
        ValidationUtils.validate_required_fields(data, "groupId", "title", "content")
        group = self._get_group(data["groupId"])
        if not is_teacher:
            self._require_member(group, user_id)

        post = {
            "groupId": group["_id"],
            "authorId": user_id,
            "type": ValidationUtils.validate_enum(data.get("type", "discussion"), POST_TYPES, "type"),
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "content": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["content"], "content"), 5000, "content"
            ),
            "subject": (data.get("subject") or group.get("subject") or "").strip(),
            "tags": _string_list(data.get("tags"), "tags"),
            "likes": [],
            "comments": []
        }
        return sanitize_mongo_document(self.repo_factory.get_study_post_repo().insert(post))

    def list_posts(self, user_id: ObjectId, group_id: str = None, is_teacher: bool = False) -> list:
        if group_id:
            group = self._get_group(group_id)
            self._require_visible(group, user_id, is_teacher)
            query = {"groupId": group["_id"]}
        elif is_teacher:
            query = {}
        else:
            visible = self.repo_factory.get_study_group_repo().find_visible_ids(user_id)
            query = {"groupId": {"$in": visible}}
        return sanitize_mongo_document(self.repo_factory.get_study_post_repo().find_recent(query))

    def _get_post(self, post_id: str, user_id: ObjectId) -> Dict:
        oid = ValidationUtils.validate_object_id(post_id, "post id")
        post = self.repo_factory.get_study_post_repo().find_by_id(oid)
        if not post:
            raise NotFoundError("Post not found")
        group = self.repo_factory.get_study_group_repo().find_by_id(post["groupId"])
        if group:
            self._require_visible(group, user_id)
        return post

    def like_post(self, post_id: str, student_id: ObjectId) -> dict:
        post = self._get_post(post_id, student_id)
        already_liked = student_id in post.get("likes", [])
        post_repo = self.repo_factory.get_study_post_repo()
        post_repo.toggle_like(post["_id"], student_id, already_liked)
        likes = post_repo.find_by_id(post["_id"], {"likes": 1}).get("likes", [])
        return {"liked": not already_liked, "likeCount": len(likes)}

    def comment_on_post(self, post_id: str, student_id: ObjectId, data: dict) -> dict:
        post = self._get_post(post_id, student_id)
        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Comment content is required")
        comment = {
            "_id": ObjectId(),
            "authorId": student_id,
            "content": ValidationUtils.validate_max_length(content, 2000, "content"),
            "createdAt": utc_now()
        }
        self.repo_factory.get_study_post_repo().add_comment(post["_id"], comment)
        return sanitize_mongo_document(comment)

    # ---------- resources ----------

    def share_resource(self, user_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "title", "type")
        group_id = None
        if data.get("groupId"):
            group = self._get_group(data["groupId"])
            self._require_member(group, user_id)
            group_id = group["_id"]
        resource = {
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 1000, "description"),
            "type": ValidationUtils.validate_non_empty_string(data["type"], "type"),
            "url": (data.get("url") or "").strip(),
            "subject": (data.get("subject") or "").strip(),
            "groupId": group_id,
            "sharedBy": user_id,
            "tags": _string_list(data.get("tags"), "tags")
        }
        return sanitize_mongo_document(self.repo_factory.get_study_resource_repo().insert(resource))

    # ---------- challenges ----------

    def create_challenge(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "title", "startDate", "endDate")
        start = ValidationUtils.parse_date(data["startDate"], "startDate")
        end = ValidationUtils.parse_date(data["endDate"], "endDate")
        if start >= end:
            raise ValidationError("startDate must be before endDate")
        challenge = {
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 1000, "description"),
            "subject": (data.get("subject") or "").strip(),
            "createdBy": teacher_id,
            "startDate": start,
            "endDate": end,
            "points": int(ValidationUtils.validate_number_range(data.get("points", 50), 0, 1000, "points")),
            "criteria": (data.get("criteria") or "").strip(),
            "participants": [],
            "isActive": True
        }
        return sanitize_mongo_document(self.repo_factory.get_study_challenge_repo().insert(challenge))

    def join_challenge(self, challenge_id: str, student_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(challenge_id, "challenge id")
        challenge_repo = self.repo_factory.get_study_challenge_repo()
        challenge = challenge_repo.find_by_id(oid)
        if not challenge:
            raise NotFoundError("Challenge not found")
        if any(p["studentId"] == student_id for p in challenge.get("participants", [])):
            raise ValidationError("Already joined this challenge")
        if not challenge.get("isActive", True) or challenge["endDate"] < utc_now():
            raise ValidationError("Challenge has ended")
        if not challenge_repo.add_participant(oid, student_id):
            raise ValidationError("Already joined this challenge")
        return {"message": "Joined challenge", "challengeId": challenge_id}

    # ---------- dashboards ----------

    def get_dashboard(self, student_id: ObjectId) -> dict:
        now = utc_now()
        group_repo = self.repo_factory.get_study_group_repo()
        my_groups = group_repo.find_for_member(student_id)
        group_ids = [g["_id"] for g in my_groups]
        subjects = list({g["subject"] for g in my_groups if g.get("subject")})

        recommended = group_repo.find_public_not_joined(student_id, subjects)
        if not recommended and subjects:
            recommended = group_repo.find_public_not_joined(student_id)

        return sanitize_mongo_document({
            "myGroups": my_groups,
            "recommendedGroups": recommended,
            "recentPosts": self.repo_factory.get_study_post_repo().find_for_groups(group_ids),
            "upcomingSessions": self.repo_factory.get_study_session_repo().find_upcoming_for_groups(group_ids, now),
            "activeChallenges": self.repo_factory.get_study_challenge_repo().find_active(now)
        })

    def get_teacher_stats(self, student_ids: List[ObjectId], teacher_id: ObjectId) -> dict:
        student_set = set(student_ids)
        groups = [
            g for g in self.repo_factory.get_study_group_repo().find_many({})
            if g["creatorId"] == teacher_id or student_set.intersection(member_ids(g))
        ]
        active_students = {sid for g in groups for sid in member_ids(g) if sid in student_set}
        return {
            "totalGroups": len(groups),
            "totalPosts": self.repo_factory.get_study_post_repo().count({"groupId": {"$in": [g["_id"] for g in groups]}}),
            "activeChallenges": self.repo_factory.get_study_challenge_repo().count_active(utc_now()),
            "activeStudents": len(active_students)
        }
