"""
Portal paths and URLs for one tenant.
"""
LOGIN_PATH = "/"
DASHBOARD_PATH = "/parent"


class PortalUrls:
    def __init__(self, tenant_id: str, base_url: str, embed_url: str):
        self.tenant_id = tenant_id
        self.base_url = base_url.rstrip("/")
        self.embed_url = embed_url.rstrip("/")

    @property
    def tenant_base(self) -> str:
        """Base for every relative portal path, e.g. https://portals.veracross.com/acme"""
        return f"{self.base_url}/{self.tenant_id}"

    @staticmethod
    def student_overview_path(student_id: str) -> str:
        return f"/parent/student/{student_id}/overview"

    def enrollment_assignments_url(self, enrollment_id: str) -> str:
        """JSON assignments endpoint, served from the embed host."""
        return f"{self.embed_url}/{self.tenant_id}/parent/enrollment/{enrollment_id}/assignments"

    def assignments_page_url(self, student_id: str, enrollment_id: str) -> str:
        """Deep link a parent can open to see the class assignments."""
        return f"{self.tenant_base}/parent/student/{student_id}/classes/{enrollment_id}/assignments"
