"""
Problem notifier: one notification per un-notified problem score, and the
notified flag is written only after the transport accepted the message.
"""
import logging

from portalwatch.core.db import Database
from portalwatch.notify.pushover import Notification, PushoverClient
from portalwatch.portal import service
from portalwatch.portal.models import AssignmentScore, Student
from portalwatch.portal.urls import PortalUrls


def build_notification(student: Student, score: AssignmentScore, urls: PortalUrls) -> Notification:
    data = score.data or {}
    return Notification(
        title=f"{student.name} has a problem assignment.",
        message=f"{data.get('completion_status')}, {data.get('assignment_description')}",
        url=urls.assignments_page_url(student.id, score.enrollment_id),
    )


class ProblemNotifier:
    def __init__(self, db: Database, transport: PushoverClient, urls: PortalUrls):
        self.db = db
        self.transport = transport
        self.urls = urls
        self.logger = logging.getLogger(self.__class__.__name__)

    def notify_problems(self) -> int:
        """
        Visit students in store order, and each student's pending problems in store
        order. A failed dispatch raises NotificationError and leaves that score
        un-notified for the next run. Returns the number of notifications sent.
        """
        self.logger.info("Notifying if there are problems.")
        sent = 0
        for student in service.list_students(self.db):
            for score in service.iter_pending_problems(self.db, student.id):
                notification = build_notification(student, score, self.urls)
                self.logger.info(f"Sending pushover message: {notification.message}")
                self.transport.send(notification)
                service.mark_notified(self.db, score.id)
                sent += 1
        self.logger.info(f"Sent {sent} notification(s)")
        return sent
