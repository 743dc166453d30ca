"""
v2ray_deploy_kit
----------------

GCP Cloud Run 에 V2Ray 서버를 배포하는 대화형 CLI 패키지.
리전/CPU/메모리/Telegram 대상을 입력받아 gcloud 로 빌드/배포한 뒤,
VLESS 접속 링크를 파일로 저장하고 Telegram 채널/채팅으로 전송한다.
"""

__all__ = [
    "config",
    "orchestrator",
    "telegram",
    "validators",
]
