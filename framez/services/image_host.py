# framez/services/image_host.py
import logging
from typing import Optional

import requests
from flask import Flask

from framez.core.errors import UploadFailedError

class CloudinaryImageHost:
    """
    Cloudinary 비서명(unsigned) 업로드 API 를 사용하는 이미지 호스팅 서비스 클래스입니다.
    업로드 프리셋만으로 인증하므로 별도의 인증 헤더가 필요 없습니다.
    """
    _upload_url = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"

    def __init__(self, cloud_name: Optional[str] = None, upload_preset: Optional[str] = None,
                 http: Optional[requests.Session] = None):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.http = http or requests.Session()

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Cloudinary 설정을 읽습니다.

        :param app: Flask 애플리케이션 객체
        """
        self.cloud_name = app.config.get('CLOUDINARY_CLOUD_NAME')
        self.upload_preset = app.config.get('CLOUDINARY_UPLOAD_PRESET')
        if not self.cloud_name or not self.upload_preset:
            raise ValueError("CLOUDINARY_CLOUD_NAME / CLOUDINARY_UPLOAD_PRESET 설정이 .env 또는 설정 파일에 필요합니다.")
        logging.info("CloudinaryImageHost: 이미지 호스팅 서비스가 성공적으로 초기화되었습니다.")

    def upload(self, filename: str, content: bytes, content_type: str) -> str:
        """
        이미지 파일을 업로드하고 영구적인 secure_url 을 반환합니다.

        :param filename: 원본 파일명
        :param content: 파일 바이트
        :param content_type: MIME 타입 (예: "image/jpeg")
        :return: Cloudinary 가 발급한 https URL
        """
        if not self.cloud_name or not self.upload_preset:
            raise RuntimeError("CloudinaryImageHost가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        url = self._upload_url.format(cloud_name=self.cloud_name)
        try:
            response = self.http.post(
                url,
                data={"upload_preset": self.upload_preset},
                files={"file": (filename, content, content_type)},
                headers={"Accept": "application/json"},
            )
        except requests.RequestException as e:
            logging.error(f"Cloudinary 업로드 요청 실패: {e}", exc_info=True)
            raise UploadFailedError() from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok or not body.get("secure_url"):
            message = (body.get("error") or {}).get("message") or "Cloudinary upload failed"
            logging.error(f"Cloudinary 업로드 오류 응답 (status: {response.status_code}): {message}")
            raise UploadFailedError(message)

        logging.info(f"Cloudinary 업로드 성공: {filename}")
        return body["secure_url"]
