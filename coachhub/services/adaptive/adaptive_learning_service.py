"""
Adaptive Learning Service - Business Logic Layer (SoC)

Learning modules and paths, per-student learning profiles, recommendations
and adaptive assessments whose question difficulty follows the answers.
"""
import logging
import random
from statistics import mean, pvariance
from typing import Dict, List, Optional
from bson import ObjectId
from coachhub.config.settings import LEARNING_LEVELS, MODULE_TYPES, QUESTION_TYPES, MAX_ASSESSMENT_QUESTIONS
from coachhub.exceptions.exceptions import ValidationError, NotFoundError
from coachhub.repositories.core.repository_factory import RepositoryFactory
from coachhub.utils.formatting.json_utils import sanitize_mongo_document
from coachhub.utils.time.timeutils import utc_now, minutes_between
from coachhub.utils.validation.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

PACE_OPTIONS = {"slow", "normal", "fast"}
DIFFICULTY_OPTIONS = {"easy", "medium", "hard"}
CONTENT_OPTIONS = {"video", "reading", "interactive", "mixed"}
REMINDER_OPTIONS = {"daily", "weekly", "never"}

# fields a student never sees before answering
HIDDEN_QUESTION_FIELDS = ("correctAnswer", "explanation")


def recommended_level(average_score: float) -> str:
    if average_score >= 80:
        return "advanced"
    if average_score >= 60:
        return "intermediate"
    return "beginner"


def compute_metrics(history: List[Dict]) -> Dict:
    """Performance metrics from the learning history"""
    if not history:
        return {"averageScore": 0, "completionRate": 0, "timeEfficiency": 0, "improvementRate": 0, "consistency": 5}

    scores = [h["score"] for h in history]
    total_time = sum(h.get("timeSpent", 0) for h in history)

    improvement = 0
    if len(history) >= 10:
        recent, older = mean(scores[-5:]), mean(scores[-10:-5])
        improvement = round((recent - older) / older * 100) if older else 0

    return {
        "averageScore": round(mean(scores)),
        "completionRate": min(100, len(history) * 10),
        "timeEfficiency": round(sum(scores) / total_time, 2) if total_time else 0,
        "improvementRate": improvement,
        "consistency": round(max(1, min(10, 10 - pvariance(scores) / 100)), 1)
    }


def analyze_strengths(profile: Dict) -> List[str]:
    metrics, abilities = profile["performanceMetrics"], profile["cognitiveAbilities"]
    strengths = []
    if metrics["averageScore"] >= 80:
        strengths.append("High academic performance")
    if metrics["completionRate"] >= 85:
        strengths.append("Excellent completion rate")
    if metrics["consistency"] >= 8:
        strengths.append("Consistent learning habits")
    if abilities.get("memory", 0) >= 8:
        strengths.append("Strong memory skills")
    if abilities.get("reasoning", 0) >= 8:
        strengths.append("Strong reasoning abilities")
    return strengths


def analyze_weaknesses(profile: Dict) -> List[str]:
    metrics, abilities = profile["performanceMetrics"], profile["cognitiveAbilities"]
    weaknesses = []
    if metrics["averageScore"] < 60:
        weaknesses.append("Low academic performance")
    if metrics["completionRate"] < 70:
        weaknesses.append("Low completion rate")
    if metrics["consistency"] < 5:
        weaknesses.append("Inconsistent learning habits")
    if abilities.get("attention", 5) < 5:
        weaknesses.append("Attention difficulties")
    if abilities.get("processingSpeed", 5) < 5:
        weaknesses.append("Slow processing speed")
    return weaknesses


def next_steps(profile: Dict, open_recommendations: List[Dict]) -> List[str]:
    metrics = profile["performanceMetrics"]
    steps = []
    if open_recommendations:
        steps.append("Review and accept recommended learning content")
    if metrics["averageScore"] < 70:
        steps.append("Focus on foundational concepts")
    if metrics["completionRate"] < 80:
        steps.append("Improve study consistency")
    if len(profile.get("learningHistory", [])) < 5:
        steps.append("Complete more learning modules")
    return steps


def check_answer(question: Dict, answer) -> bool:
    question_type = question.get("type")
    correct = question.get("correctAnswer")
    if question_type in ("multiple_choice", "true_false"):
        return correct == answer
    if question_type == "fill_blank":
        return answer in correct if isinstance(correct, list) else correct == answer
    if question_type == "essay":
        return True
    return False


def public_question(question: Dict) -> Dict:
    return {k: v for k, v in question.items() if k not in HIDDEN_QUESTION_FIELDS}


class AdaptiveLearningService:
    def __init__(self):
        self.repo_factory = RepositoryFactory()

    # ---------- modules & paths ----------

    def _validate_question(self, raw: Dict, index: int, default_subject: str) -> Dict:
        if not isinstance(raw, dict):
            raise ValidationError("Each question must be an object")
        ValidationUtils.validate_required_fields(raw, "question", "type")
        question_type = ValidationUtils.validate_enum(raw["type"], QUESTION_TYPES, "question type")
        if question_type != "essay" and raw.get("correctAnswer") in (None, "", []):
            raise ValidationError(f"Question {index + 1} needs a correctAnswer")
        return {
            "id": str(raw.get("id") or f"q{index + 1}"),
            "question": ValidationUtils.validate_non_empty_string(raw["question"], "question"),
            "type": question_type,
            "options": raw.get("options") or [],
            "correctAnswer": raw.get("correctAnswer"),
            "points": ValidationUtils.validate_number_range(raw.get("points", 1), 0, 100, "points"),
            "difficulty": ValidationUtils.validate_number_range(raw.get("difficulty", 5), 1, 10, "difficulty"),
            "subject": (raw.get("subject") or default_subject).strip(),
            "explanation": (raw.get("explanation") or "").strip()
        }

    def _validate_assessment(self, raw, subject: str) -> Dict:
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValidationError("assessment must be an object")
        questions = raw.get("questions") or []
        if not isinstance(questions, list):
            raise ValidationError("assessment.questions must be a list")
        validated = [self._validate_question(q, i, subject) for i, q in enumerate(questions)]
        if len({q["id"] for q in validated}) != len(validated):
            raise ValidationError("Question ids must be unique")
        return {
            "questions": validated,
            "passingScore": ValidationUtils.validate_number_range(raw.get("passingScore", 70), 0, 100, "passingScore"),
            "attempts": int(ValidationUtils.validate_number_range(raw.get("attempts", 3), 1, 100, "attempts"))
        }

    def create_module(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "title", "subject", "level", "type")
        subject = ValidationUtils.validate_non_empty_string(data["subject"], "subject")
        objectives = data.get("learningObjectives") or []
        if not isinstance(objectives, list):
            raise ValidationError("learningObjectives must be a list")

        module = {
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 1000, "description"),
            "subject": subject,
            "level": ValidationUtils.validate_enum(data["level"], LEARNING_LEVELS, "level"),
            "type": ValidationUtils.validate_enum(data["type"], MODULE_TYPES, "type"),
            "content": data.get("content") if isinstance(data.get("content"), dict) else {"text": data.get("content") or ""},
            "learningObjectives": objectives,
            "estimatedTime": int(ValidationUtils.validate_number_range(data.get("estimatedTime", 30), 1, 10000, "estimatedTime")),
            "difficulty": ValidationUtils.validate_number_range(data.get("difficulty", 5), 1, 10, "difficulty"),
            "tags": [t for t in data.get("tags") or [] if isinstance(t, str)],
            "isAdaptive": ValidationUtils.parse_bool(data.get("isAdaptive", True), "isAdaptive"),
            "isActive": ValidationUtils.parse_bool(data.get("isActive", True), "isActive"),
            "assessment": self._validate_assessment(data.get("assessment"), subject),
            "createdBy": teacher_id
        }
        created = self.repo_factory.get_module_repo().insert(module)
        logger.info(f"Learning module '{module['title']}' created by {teacher_id}")
        return sanitize_mongo_document(created)

    def list_modules(self, subject: str = None, level: str = None, active_only: bool = False) -> list:
        query = {}
        if subject:
            query["subject"] = subject
        if level:
            query["level"] = ValidationUtils.validate_enum(level, LEARNING_LEVELS, "level")
        if active_only:
            query["isActive"] = True
        return sanitize_mongo_document(self.repo_factory.get_module_repo().find_catalog(query))

    def get_module_for_student(self, module_id: str) -> dict:
        oid = ValidationUtils.validate_object_id(module_id, "module id")
        module = self.repo_factory.get_module_repo().find_by_id(oid)
        if not module or not module.get("isActive", True):
            raise NotFoundError("Module not found")
        assessment = module.get("assessment") or {}
        module["assessment"] = {**assessment, "questions": [public_question(q) for q in assessment.get("questions", [])]}
        return sanitize_mongo_document(module)

    def create_learning_path(self, teacher_id: ObjectId, data: dict) -> dict:
        ValidationUtils.validate_required_fields(data, "title", "subject", "level", "modules")
        if not isinstance(data["modules"], list):
            raise ValidationError("modules must be a list")
        module_ids = [ValidationUtils.validate_object_id(m, "module id") for m in data["modules"]]
        modules = {m["_id"]: m for m in self.repo_factory.get_module_repo().find_by_ids(module_ids)}
        if len(modules) != len(set(module_ids)):
            raise ValidationError("Every module id must exist")

        path = {
            "title": ValidationUtils.validate_max_length(
                ValidationUtils.validate_non_empty_string(data["title"], "title"), 200, "title"
            ),
            "description": ValidationUtils.validate_max_length(data.get("description") or "", 1000, "description"),
            "subject": ValidationUtils.validate_non_empty_string(data["subject"], "subject"),
            "level": ValidationUtils.validate_enum(data["level"], LEARNING_LEVELS, "level"),
            "modules": [
                {"moduleId": mid, "order": order, "isRequired": True, "estimatedTime": modules[mid].get("estimatedTime", 0)}
                for order, mid in enumerate(module_ids, start=1)
            ],
            "estimatedDuration": sum(modules[mid].get("estimatedTime", 0) for mid in module_ids),
            "difficulty": round(mean(modules[mid].get("difficulty", 5) for mid in module_ids), 1) if module_ids else 0,
            "isActive": True,
            "createdBy": teacher_id
        }
        return sanitize_mongo_document(self.repo_factory.get_path_repo().insert(path))

    def list_learning_paths(self) -> list:
        return sanitize_mongo_document(self.repo_factory.get_path_repo().find_active())

    # ---------- profiles ----------

    def get_or_create_profile(self, student_id: ObjectId) -> Dict:
        profile_repo = self.repo_factory.get_profile_repo()
        profile = profile_repo.find_by_student(student_id)
        if profile:
            return profile
        return profile_repo.insert({
            "studentId": student_id,
            "learningStyle": {"visual": 25, "auditory": 25, "kinesthetic": 25, "reading": 25},
            "cognitiveAbilities": {"memory": 5, "attention": 5, "processingSpeed": 5, "reasoning": 5},
            "subjectPreferences": [],
            "learningHistory": [],
            "adaptiveSettings": {
                "preferredPace": "normal",
                "preferredDifficulty": "medium",
                "preferredContentType": "mixed",
                "reminderFrequency": "weekly"
            },
            "performanceMetrics": compute_metrics([]),
            "lastUpdated": utc_now()
        })

    def get_profile(self, student_id: ObjectId) -> dict:
        return sanitize_mongo_document(self.get_or_create_profile(student_id))

    def update_settings(self, student_id: ObjectId, data: dict) -> dict:
        profile = self.get_or_create_profile(student_id)
        options = {
            "preferredPace": PACE_OPTIONS,
            "preferredDifficulty": DIFFICULTY_OPTIONS,
            "preferredContentType": CONTENT_OPTIONS,
            "reminderFrequency": REMINDER_OPTIONS
        }
        settings = dict(profile["adaptiveSettings"])
        changed = False
        for name, allowed in options.items():
            if name in data:
                settings[name] = ValidationUtils.validate_enum(data[name], allowed, name)
                changed = True
        if "subjectPreferences" in data:
            if not isinstance(data["subjectPreferences"], list):
                raise ValidationError("subjectPreferences must be a list")
            profile["subjectPreferences"] = data["subjectPreferences"]
            changed = True
        if not changed:
            raise ValidationError("Nothing to update")
        profile["adaptiveSettings"] = settings
        return sanitize_mongo_document(self.repo_factory.get_profile_repo().replace(profile))

    def update_student_profile(self, student_id: ObjectId, performance: Dict) -> Dict:
        """Record a finished module and refresh metrics and recommendations"""
        profile = self.get_or_create_profile(student_id)
        profile.setdefault("learningHistory", []).append({
            "moduleId": performance["moduleId"],
            "completedAt": utc_now(),
            "score": performance["score"],
            "timeSpent": performance.get("timeSpent", 0),
            "attempts": performance.get("attempts", 1),
            "difficulty": performance.get("difficulty", 5)
        })
        profile["performanceMetrics"] = compute_metrics(profile["learningHistory"])
        self.repo_factory.get_profile_repo().replace(profile)
        self.generate_recommendations(profile)
        return profile

    # ---------- recommendations ----------

    def generate_recommendations(self, profile: Dict) -> List[Dict]:
        student_id = profile["studentId"]
        metrics = profile["performanceMetrics"]
        recommendation_repo = self.repo_factory.get_recommendation_repo()
        recommendation_repo.clear_open_unaccepted(student_id)

        base = {"studentId": student_id, "isAccepted": False, "isCompleted": False, "relatedContent": []}
        created = []
        if metrics["averageScore"] < 70:
            created.append(recommendation_repo.insert({
                **base, "type": "practice", "title": "Practice Basic Concepts",
                "description": "Focus on fundamental concepts to improve your understanding",
                "priority": "high", "reason": "Low average score indicates need for foundational review",
                "confidence": 85, "estimatedTime": 60, "difficulty": 3, "subject": "General"
            }))
        if metrics["completionRate"] < 80:
            created.append(recommendation_repo.insert({
                **base, "type": "module", "title": "Complete More Modules",
                "description": "Increase your completion rate by finishing more learning modules",
                "priority": "medium", "reason": "Low completion rate affects overall progress",
                "confidence": 75, "estimatedTime": 120, "difficulty": 5, "subject": "General"
            }))

        done = [h["moduleId"] for h in profile.get("learningHistory", [])]
        level = recommended_level(metrics["averageScore"])
        for module in self.repo_factory.get_module_repo().find_active_for_level(level, done, limit=3):
            created.append(recommendation_repo.insert({
                **base, "type": "module", "title": module["title"],
                "description": module.get("description", ""),
                "priority": "low", "reason": f"Matches your {level} level",
                "confidence": 70, "estimatedTime": module.get("estimatedTime", 0),
                "difficulty": module.get("difficulty", 5), "subject": module.get("subject", ""),
                "relatedContent": [module["_id"]]
            }))
        return created

    def accept_recommendation(self, recommendation_id: str, student_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(recommendation_id, "recommendation id")
        recommendation_repo = self.repo_factory.get_recommendation_repo()
        recommendation = recommendation_repo.find_by_id(oid)
        if not recommendation or recommendation["studentId"] != student_id:
            raise NotFoundError("Recommendation not found")
        updated = recommendation_repo.update_fields(oid, {"isAccepted": True, "acceptedAt": utc_now()})
        return sanitize_mongo_document(updated)

    # ---------- dashboard & paths ----------

    def _path_progress(self, path: Dict, scores: Dict[ObjectId, float]) -> Dict:
        module_ids = [m["moduleId"] for m in path.get("modules", [])]
        titles = {m["_id"]: m["title"] for m in self.repo_factory.get_module_repo().find_by_ids(module_ids, {"title": 1})}
        modules = [
            {
                "moduleId": m["moduleId"],
                "title": titles.get(m["moduleId"], "Unknown Module"),
                "order": m.get("order"),
                "isRequired": m.get("isRequired", True),
                "estimatedTime": m.get("estimatedTime", 0),
                "completed": m["moduleId"] in scores,
                "score": scores.get(m["moduleId"])
            }
            for m in path.get("modules", [])
        ]
        completed = len([m for m in modules if m["completed"]])
        return {**path, "modules": modules, "progress": round(completed / len(modules) * 100) if modules else 0}

    @staticmethod
    def _latest_scores(profile: Dict) -> Dict[ObjectId, float]:
        scores = {}
        for entry in profile.get("learningHistory", []):
            scores[entry["moduleId"]] = entry["score"]
        return scores

    def get_dashboard(self, student_id: ObjectId) -> dict:
        profile = self.get_or_create_profile(student_id)
        recommendations = self.repo_factory.get_recommendation_repo().find_open(student_id, 10)
        scores = self._latest_scores(profile)
        paths = [self._path_progress(p, scores) for p in self.repo_factory.get_path_repo().find_active(limit=5)]

        history = sorted(profile.get("learningHistory", []), key=lambda h: h["completedAt"], reverse=True)[:5]
        modules = {
            m["_id"]: m for m in self.repo_factory.get_module_repo().find_by_ids(
                [h["moduleId"] for h in history], {"title": 1, "subject": 1, "type": 1}
            )
        }
        recent_modules = [
            {
                "moduleId": h["moduleId"],
                "title": modules.get(h["moduleId"], {}).get("title", "Unknown Module"),
                "subject": modules.get(h["moduleId"], {}).get("subject", "Unknown"),
                "type": modules.get(h["moduleId"], {}).get("type", "unknown"),
                "completedAt": h["completedAt"],
                "score": h["score"],
                "timeSpent": h.get("timeSpent", 0)
            }
            for h in history
        ]

        return sanitize_mongo_document({
            "studentProfile": {
                "learningStyle": profile["learningStyle"],
                "cognitiveAbilities": profile["cognitiveAbilities"],
                "performanceMetrics": profile["performanceMetrics"],
                "adaptiveSettings": profile["adaptiveSettings"]
            },
            "recommendations": recommendations,
            "learningPaths": paths,
            "recentModules": recent_modules,
            "strengths": analyze_strengths(profile),
            "weaknesses": analyze_weaknesses(profile),
            "nextSteps": next_steps(profile, recommendations)
        })

    def get_personalized_learning_path(self, student_id: ObjectId, subject: Optional[str]) -> dict:
        profile = self.get_or_create_profile(student_id)
        level = recommended_level(profile["performanceMetrics"]["averageScore"])
        query = {"level": level}
        if subject:
            query["subject"] = subject
        scores = self._latest_scores(profile)
        paths = [self._path_progress(p, scores) for p in self.repo_factory.get_path_repo().find_active(query)]
        return sanitize_mongo_document({"level": level, "paths": paths})

    # ---------- adaptive assessment ----------

    @staticmethod
    def _next_question(assessment: Dict) -> Optional[Dict]:
        answered = {a["questionId"] for a in assessment["studentAnswers"]}
        available = [q for q in assessment["questions"] if q["id"] not in answered]
        if not available:
            return None
        target = assessment["adaptiveAlgorithm"]["nextDifficulty"]
        suitable = [q for q in available if abs(q.get("difficulty", 5) - target) <= 1]
        return public_question(random.choice(suitable or available))

    @staticmethod
    def _is_complete(assessment: Dict) -> bool:
        algorithm = assessment["adaptiveAlgorithm"]
        return algorithm["questionsShown"] >= algorithm["totalQuestions"]

    def take_adaptive_assessment(self, module_id: str, student_id: ObjectId) -> dict:
        oid = ValidationUtils.validate_object_id(module_id, "module id")
        module = self.repo_factory.get_module_repo().find_by_id(oid)
        questions = ((module or {}).get("assessment") or {}).get("questions") or []
        if not questions:
            raise NotFoundError("Assessment not found")

        assessment_repo = self.repo_factory.get_assessment_repo()
        assessment = assessment_repo.find_open(student_id, oid)
        if not assessment:
            assessment = assessment_repo.insert({
                "studentId": student_id,
                "moduleId": oid,
                "type": "adaptive",
                "questions": questions,
                "studentAnswers": [],
                "adaptiveAlgorithm": {
                    "currentDifficulty": 5,
                    "nextDifficulty": 5,
                    "adjustmentReason": "Initial assessment",
                    "questionsShown": 0,
                    "totalQuestions": min(len(questions), MAX_ASSESSMENT_QUESTIONS),
                    "difficultyProgression": []
                },
                "results": None,
                "isCompleted": False,
                "completedAt": None
            })

        return sanitize_mongo_document({
            "assessmentId": assessment["_id"],
            "nextQuestion": self._next_question(assessment),
            "isComplete": self._is_complete(assessment),
            "questionsShown": assessment["adaptiveAlgorithm"]["questionsShown"],
            "totalQuestions": assessment["adaptiveAlgorithm"]["totalQuestions"]
        })

    @staticmethod
    def _results(assessment: Dict) -> Dict:
        by_id = {q["id"]: q for q in assessment["questions"]}
        answers = assessment["studentAnswers"]
        asked = [by_id[a["questionId"]] for a in answers]
        max_points = sum(q.get("points", 0) for q in asked)
        earned = sum(by_id[a["questionId"]].get("points", 0) for a in answers if a["isCorrect"])
        percentage = round(earned / max_points * 100) if max_points else 0

        per_subject: Dict[str, List[int]] = {}
        for answer in answers:
            subject = by_id[answer["questionId"]].get("subject") or "General"
            correct_total = per_subject.setdefault(subject, [0, 0])
            correct_total[0] += 1 if answer["isCorrect"] else 0
            correct_total[1] += 1
        strengths = [s for s, (c, t) in per_subject.items() if c / t >= 0.8]
        weaknesses = [s for s, (c, t) in per_subject.items() if c / t < 0.6]

        recommendations = []
        if percentage < 60:
            recommendations.append("Review fundamental concepts")
        if weaknesses:
            recommendations.append(f"Focus on: {', '.join(weaknesses)}")

        correct = len([a for a in answers if a["isCorrect"]])
        return {
            "score": earned,
            "percentage": percentage,
            "correctAnswers": correct,
            "incorrectAnswers": len(answers) - correct,
            "difficultyProgression": assessment["adaptiveAlgorithm"]["difficultyProgression"],
            "strengths": strengths,
            "weaknesses": weaknesses,
            "recommendations": recommendations
        }

    def submit_assessment_answer(self, assessment_id: str, student_id: ObjectId, data: dict) -> dict:
        oid = ValidationUtils.validate_object_id(assessment_id, "assessment id")
        assessment_repo = self.repo_factory.get_assessment_repo()
        assessment = assessment_repo.find_by_id(oid)
        if not assessment or assessment["studentId"] != student_id:
            raise NotFoundError("Assessment not found")
        if assessment.get("isCompleted"):
            raise ValidationError("Assessment is already completed")

        ValidationUtils.validate_required_fields(data, "questionId")
        question = next((q for q in assessment["questions"] if q["id"] == str(data["questionId"])), None)
        if not question:
            raise NotFoundError("Question not found")
        if any(a["questionId"] == question["id"] for a in assessment["studentAnswers"]):
            raise ValidationError("Question already answered")

        is_correct = check_answer(question, data.get("answer"))
        assessment["studentAnswers"].append({
            "questionId": question["id"],
            "answer": data.get("answer"),
            "isCorrect": is_correct,
            "confidence": ValidationUtils.safe_int_conversion(data.get("confidence"), 0),
            "answeredAt": utc_now()
        })

        algorithm = assessment["adaptiveAlgorithm"]
        algorithm["questionsShown"] += 1
        algorithm["difficultyProgression"].append(question.get("difficulty", 5))
        algorithm["currentDifficulty"] = algorithm["nextDifficulty"]
        if is_correct:
            algorithm["nextDifficulty"] = min(10, algorithm["nextDifficulty"] + 0.5)
            algorithm["adjustmentReason"] = "Correct answer - increasing difficulty"
        else:
            algorithm["nextDifficulty"] = max(1, algorithm["nextDifficulty"] - 0.5)
            algorithm["adjustmentReason"] = "Incorrect answer - decreasing difficulty"

        is_complete = self._is_complete(assessment)
        if is_complete:
            now = utc_now()
            assessment["isCompleted"] = True
            assessment["completedAt"] = now
            assessment["results"] = self._results(assessment)
        assessment_repo.replace(assessment)

        if is_complete:
            module = self.repo_factory.get_module_repo().find_by_id(assessment["moduleId"], {"difficulty": 1})
            self.update_student_profile(student_id, {
                "moduleId": assessment["moduleId"],
                "score": assessment["results"]["percentage"],
                "timeSpent": max(1, minutes_between(assessment["createdAt"], assessment["completedAt"])),
                "attempts": 1,
                "difficulty": (module or {}).get("difficulty", 5)
            })
            logger.info(f"Assessment {assessment_id} completed with {assessment['results']['percentage']}%")

        return sanitize_mongo_document({
            "isCorrect": is_correct,
            "explanation": question.get("explanation", ""),
            "nextQuestion": None if is_complete else self._next_question(assessment),
            "isComplete": is_complete,
            "results": assessment.get("results") if is_complete else None
        })

    # ---------- teacher stats ----------

    def get_teacher_stats(self, teacher_id: ObjectId) -> dict:
        modules = self.repo_factory.get_module_repo().find_catalog({"createdBy": teacher_id})
        module_titles = {m["_id"]: m["title"] for m in modules}

        per_module: Dict[ObjectId, List[float]] = {}
        per_student: Dict[ObjectId, List[float]] = {}
        completion_rates = []
        minutes = 0
        for profile in self.repo_factory.get_profile_repo().find_all():
            entries = [h for h in profile.get("learningHistory", []) if h["moduleId"] in module_titles]
            if not entries:
                continue
            completion_rates.append(profile["performanceMetrics"].get("completionRate", 0))
            for entry in entries:
                per_module.setdefault(entry["moduleId"], []).append(entry["score"])
                per_student.setdefault(profile["studentId"], []).append(entry["score"])
                minutes += entry.get("timeSpent", 0)

        all_scores = [s for scores in per_module.values() for s in scores]
        top_module = max(per_module, key=lambda mid: mean(per_module[mid])) if per_module else None
        return {
            "totalModules": len(modules),
            "activeModules": len([m for m in modules if m.get("isActive", True)]),
            "adaptiveModules": len([m for m in modules if m.get("isAdaptive")]),
            "enrolledStudents": len(per_student),
            "averageScore": round(mean(all_scores)) if all_scores else 0,
            "averageCompletionRate": round(mean(completion_rates)) if completion_rates else 0,
            "totalLearningHours": round(minutes / 60, 1),
            "topPerformingModule": module_titles[top_module] if top_module else None,
            "strugglingStudents": len([sid for sid, scores in per_student.items() if mean(scores) < 60])
        }
