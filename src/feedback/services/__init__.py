from src.feedback.services.comment_service import CommentService
from src.feedback.services.feedback_service import FeedbackService
from src.feedback.services.project_service import ProjectService

__all__ = ["CommentService", "FeedbackService", "ProjectService"]
