## static_ingest/alerts.py

from __future__ import annotations
import os, smtplib, socket, requests
from email.mime.text import MIMEText
from typing import Optional
from .utils import logger


def smtp_settings() -> Optional[dict]:
    env = {k: os.getenv(k) for k in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "ALERT_EMAIL_TO")}
    return env if all(env.values()) else None


def send_email(tag: str, subject: str, body: str):
    smtp = smtp_settings()
    if smtp is None:
        return
    msg = MIMEText(f"Source: {tag}\nHost: {socket.gethostname()}\n\n{body}")
    msg["Subject"] = f"[static-ingest:{tag}] {subject}"
    msg["From"] = smtp["SMTP_USER"]
    msg["To"] = smtp["ALERT_EMAIL_TO"]
    with smtplib.SMTP(smtp["SMTP_HOST"]) as s:
        s.starttls()
        s.login(smtp["SMTP_USER"], smtp["SMTP_PASS"])
        s.send_message(msg)


def send_slack(tag: str, text: str):
    url = os.getenv("SLACK_WEBHOOK_URL")
    if not url:
        return
    r = requests.post(url, json={"text": f"[{tag}] {text}", "username": "static-ingest"}, timeout=5)
    r.raise_for_status()


def notify_failure(tag: str, path: str, error: Exception):
    """Best-effort alert for a file that could not be ingested."""
    try:
        send_email(tag, f"failed to ingest {os.path.basename(path)}", f"File: {path}\nError: {error!r}")
    except (OSError, smtplib.SMTPException) as e:
        logger.warning(f"[{tag}] failure e-mail for {path} not sent: {e}")
    try:
        send_slack(tag, f":rotating_light: ingest failure for {path}: {error}")
    except requests.RequestException as e:
        logger.warning(f"[{tag}] failure Slack alert for {path} not sent: {e}")
