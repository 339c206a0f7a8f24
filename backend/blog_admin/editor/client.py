import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """관리자 API가 실패 응답을 돌려준 경우"""

    def __init__(self, status_code: int, message: str, details: Optional[List[Dict[str, str]]] = None):
        self.status_code = status_code
        self.message = message
        self.details = details or []
        super().__init__(f"{status_code}: {message}")


class PostsApiClient:
    """블로그 관리자 API 비동기 클라이언트"""

    def __init__(self, http: httpx.AsyncClient, api_prefix: str = "/api"):
        self.http = http
        self.api_prefix = api_prefix.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.http.request(method, self._url(path), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"API 요청 실패: {method} {path} - {str(e)}")
            raise ApiError(0, "Could not reach the server")

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error") if isinstance(body, dict) else None
            details = body.get("details") if isinstance(body, dict) else None
            raise ApiError(response.status_code, message or response.reason_phrase, details)

        return response.json()

    async def list_posts(self, status: Optional[str] = None, skip: int = 0, limit: int = 20) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"skip": skip, "limit": limit}
        if status:
            params["status"] = status
        return await self._request("GET", "/posts", params=params)

    async def get_post(self, post_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/posts/{post_id}")

    async def create_post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/posts", json=payload)

    async def update_post(self, post_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/posts/{post_id}", json=payload)

    async def delete_post(self, post_id: str) -> bool:
        body = await self._request("DELETE", f"/posts/{post_id}")
        return bool(body.get("success"))

    async def upload_image(self, file_bytes: bytes, filename: str, content_type: str) -> Dict[str, str]:
        files = {"file": (filename, file_bytes, content_type)}
        return await self._request("POST", "/upload", files=files)

    async def delete_image(self, public_id: str) -> bool:
        body = await self._request("POST", "/delete-image", json={"publicId": public_id})
        return bool(body.get("success"))
