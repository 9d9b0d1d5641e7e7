import requests
from typing import Dict, Any, Optional, List, Tuple
import json
from config import API_BASE_URL, REQUEST_TIMEOUT

# (filename, bytes, content type)
FileTuple = Tuple[str, bytes, Optional[str]]


class APIClient:
    """Client for communicating with the backend API."""

    def __init__(self, base_url: str = API_BASE_URL):
        self.base_url = base_url.rstrip("/")
        self.timeout = REQUEST_TIMEOUT
        self.session = requests.Session()

        # Set default headers
        self.session.headers.update({
            "Content-Type": "application/json"
        })

    def set_auth_token(self, token: str):
        """Set the authorization token for API requests."""
        self.session.headers.update({
            "Authorization": f"Bearer {token}"
        })

    def clear_auth_token(self):
        """Clear the authorization token."""
        if "Authorization" in self.session.headers:
            del self.session.headers["Authorization"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def login(self, password: str) -> Dict[str, Any]:
        """Exchange the admin password for an access token."""
        return self._request("POST", "/auth/login", json={"password": password})

    def logout(self) -> Dict[str, Any]:
        """Revoke the current admin session."""
        return self._request("POST", "/auth/logout")

    def get_admin_info(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    # ------------------------------------------------------------------
    # Public trip board
    # ------------------------------------------------------------------

    def get_trips(self, **filters: Any) -> Dict[str, Any]:
        """List visible trips. Filters with a ``None`` value are left out."""
        params = {key: value for key, value in filters.items() if value is not None}
        return self._request("GET", "/trips/", params=params)

    def get_trip(self, trip_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/trips/{trip_id}")

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def get_admin_trips(self, show_deleted: bool = False) -> Dict[str, Any]:
        return self._request("GET", "/admin/trips", params={"show_deleted": str(show_deleted).lower()})

    def get_admin_trip(self, trip_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/admin/trips/{trip_id}")

    def create_trip(self, trip_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new (hidden) trip."""
        return self._request("POST", "/admin/trips", json=trip_data)

    def update_trip(self, trip_id: int, trip_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/admin/trips/{trip_id}", json=trip_data)

    def set_trip_status(self, trip_id: int, status: str) -> Dict[str, Any]:
        """Show, hide or soft delete a trip."""
        return self._request("PATCH", f"/admin/trips/{trip_id}/status", json={"status": status})

    def duplicate_trip(self, trip_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/admin/trips/{trip_id}/duplicate")

    def upload_brochure(self, trip_id: int, file: FileTuple) -> Dict[str, Any]:
        return self._upload(f"/admin/trips/{trip_id}/brochure", files={"file": file})

    def upload_images(
        self,
        trip_id: int,
        files: List[FileTuple],
        is_thumbnail: bool = False,
        is_flyer: bool = False
    ) -> Dict[str, Any]:
        """Upload gallery images, all flagged with the same roles."""
        return self._upload(
            f"/admin/trips/{trip_id}/images",
            files=[("files", file) for file in files],
            data={"is_thumbnail": str(is_thumbnail).lower(), "is_flyer": str(is_flyer).lower()}
        )

    def update_image_roles(
        self,
        trip_id: int,
        image_id: int,
        is_thumbnail: Optional[bool] = None,
        is_flyer: Optional[bool] = None
    ) -> Dict[str, Any]:
        payload = {}
        if is_thumbnail is not None:
            payload["is_thumbnail"] = is_thumbnail
        if is_flyer is not None:
            payload["is_flyer"] = is_flyer
        return self._request("PATCH", f"/admin/trips/{trip_id}/images/{image_id}", json=payload)

    def delete_image(self, trip_id: int, image_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/admin/trips/{trip_id}/images/{image_id}")

    def set_thumbnail(self, trip_id: int, image_path: Optional[str]) -> Dict[str, Any]:
        """Select the card image; ``None`` restores the brochure default."""
        return self._request("PUT", f"/admin/trips/{trip_id}/thumbnail", json={"image_path": image_path})

    def add_video(self, trip_id: int, video_url: str) -> Dict[str, Any]:
        return self._request("POST", f"/admin/trips/{trip_id}/videos", json={"video_url": video_url})

    def delete_video(self, trip_id: int, video_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/admin/trips/{trip_id}/videos/{video_id}")

    def get_health(self) -> Dict[str, Any]:
        """Get API health status."""
        return self._request("GET", "/health")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            return {"success": False, "error": f"Backend unreachable: {e}", "status_code": None}
        return self._handle_response(response)

    def _upload(self, path: str, files: Any, data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        # Remove Content-Type header so requests sets the multipart boundary
        headers = dict(self.session.headers)
        if "Content-Type" in headers:
            del headers["Content-Type"]

        try:
            response = requests.post(
                f"{self.base_url}{path}",
                files=files,
                data=data,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            return {"success": False, "error": f"Backend unreachable: {e}", "status_code": None}
        return self._handle_response(response)

    def _handle_response(self, response: requests.Response) -> Dict[str, Any]:
        """Handle API response and return JSON data or error."""
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            data = {"error": "Invalid JSON response"}

        if response.status_code >= 400:
            error_msg = data.get("error") or data.get("detail") or f"HTTP {response.status_code}"
            if isinstance(error_msg, list):
                # FastAPI validation errors
                error_msg = "; ".join(item.get("msg", str(item)) for item in error_msg)
            return {"success": False, "error": error_msg, "status_code": response.status_code}

        return {"success": True, "data": data}


# Global API client instance
api_client = APIClient()
