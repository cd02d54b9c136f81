"""
Email Service using Resend

Handles transactional emails for the tryout registration flow:
OTP codes, generated passwords and payment decisions.
"""

import asyncio
import logging
from html import escape

import resend

from tryout.core.config import settings
from tryout.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

EVENT_NAME = "Tryout PTN"
EVENT_ORGANIZER = "Genza Education × Universitas Galuh"

_BASE_STYLE = """
    body { font-family: 'Inter', Arial, sans-serif; margin: 0; padding: 0; background-color: #f5f7fa; }
    .container { max-width: 500px; margin: 40px auto; background: white; border-radius: 12px; box-shadow: 0 4px 20px rgba(0,0,0,0.1); overflow: hidden; }
    .header { padding: 30px; text-align: center; }
    .header h1 { color: white; margin: 0; font-size: 24px; }
    .content { padding: 30px; }
    .greeting { color: #374151; font-size: 16px; margin-bottom: 20px; }
    .code-box { border-radius: 8px; padding: 20px; text-align: center; margin: 20px 0; }
    .info { color: #6b7280; font-size: 14px; margin-top: 20px; }
    .warning { background: #fef3c7; border: 1px solid #f59e0b; border-radius: 8px; padding: 15px; margin: 20px 0; }
    .warning p { color: #92400e; margin: 0; font-size: 14px; }
    .footer { background: #f9fafb; padding: 20px; text-align: center; color: #9ca3af; font-size: 12px; }
"""


def ensure_email_configured() -> None:
    """
    Fail closed when the mail credentials are missing.

    Development mode is allowed through: send_email logs instead of sending.

    Raises:
        ConfigurationError: If RESEND_API_KEY is not set outside development
    """
    if not settings.email_configured and not settings.is_development:
        logger.error("RESEND_API_KEY not set - refusing to run an email-dependent operation")
        raise ConfigurationError("Konfigurasi email tidak lengkap.")


def _render(header_color: str, title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <div class="header" style="background: {header_color};">
                <h1>{title}</h1>
                <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0; font-size: 14px;">{EVENT_ORGANIZER}</p>
            </div>
            <div class="content">
                {body}
            </div>
            <div class="footer">
                <p>&copy; {EVENT_ORGANIZER}</p>
                <p>Platform Tryout Ujian Masuk Perguruan Tinggi</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not settings.resend_api_key:
        if settings.is_development:
            logger.warning("RESEND_API_KEY not set - logging email instead of sending")
            logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
            return True
        logger.error(f"RESEND_API_KEY not set - cannot send email to {to_email}")
        return False

    resend.api_key = settings.resend_api_key

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_otp_code(to_email: str, nama: str, code: str, expiry_minutes: int) -> bool:
    """Send the registration OTP code."""
    safe_nama = escape(nama)

    body = f"""
        <p class="greeting">Halo <strong>{safe_nama}</strong>,</p>
        <p class="greeting">Berikut adalah kode verifikasi untuk pendaftaran {EVENT_NAME}:</p>
        <div class="code-box" style="background: #f0fdf4; border: 2px solid #10b981;">
            <p style="font-size: 36px; font-weight: bold; color: #059669; letter-spacing: 8px; margin: 0;">{code}</p>
        </div>
        <p class="info">Kode ini berlaku selama {expiry_minutes} menit.</p>
        <p class="info">Jangan bagikan kode ini kepada siapapun.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Kode Verifikasi Pendaftaran {EVENT_NAME}",
        html_content=_render(
            "linear-gradient(135deg, #1e3a8a 0%, #3b82f6 100%)", EVENT_NAME, body
        ),
    )


async def send_participant_password(
    to_email: str,
    nama: str,
    password: str,
    is_reset: bool = False,
) -> bool:
    """Send a generated password, either after registration or after a reset."""
    safe_nama = escape(nama)
    safe_email = escape(to_email)
    safe_password = escape(password)

    if is_reset:
        intro = (
            f"Kami menerima permintaan reset password untuk akun {EVENT_NAME} Anda. "
            "Berikut adalah password baru Anda:"
        )
        subject = f"Password Baru Akun {EVENT_NAME}"
    else:
        intro = (
            "Selamat! Email Anda telah berhasil diverifikasi. "
            f"Berikut adalah password untuk login ke akun {EVENT_NAME} Anda:"
        )
        subject = f"Password Akun {EVENT_NAME} - Genza × Unigal"

    body = f"""
        <p class="greeting">Halo <strong>{safe_nama}</strong>,</p>
        <p class="greeting">{intro}</p>
        <div class="code-box" style="background: #faf5ff; border: 2px solid #7c3aed;">
            <p style="font-size: 28px; font-weight: bold; color: #7c3aed; letter-spacing: 4px; margin: 0; font-family: monospace;">{safe_password}</p>
        </div>
        <div class="warning">
            <p><strong>PENTING:</strong> Simpan password ini dengan baik.</p>
        </div>
        <p class="info">Gunakan email <strong>{safe_email}</strong> dan password di atas untuk masuk ke akun Anda.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=subject,
        html_content=_render(
            "linear-gradient(135deg, #7c3aed 0%, #a855f7 100%)", EVENT_NAME, body
        ),
    )


async def send_payment_verified(to_email: str, nama: str) -> bool:
    """Tell the participant their payment was verified and the card is available."""
    safe_nama = escape(nama)

    body = f"""
        <p class="greeting">Halo <strong>{safe_nama}</strong>,</p>
        <p class="greeting">Pembayaran Anda telah diverifikasi oleh panitia.</p>
        <p class="greeting">Kartu peserta {EVENT_NAME} sudah dapat dicetak dari dashboard Anda.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Pembayaran {EVENT_NAME} Terverifikasi",
        html_content=_render(
            "linear-gradient(135deg, #047857 0%, #10b981 100%)", EVENT_NAME, body
        ),
    )


async def send_payment_rejected(to_email: str, nama: str, admin_notes: str | None) -> bool:
    """Tell the participant their proof was rejected and they may upload again."""
    safe_nama = escape(nama)
    notes_html = ""
    if admin_notes:
        notes_html = f"""
        <div class="warning">
            <p><strong>Catatan panitia:</strong> {escape(admin_notes)}</p>
        </div>
        """

    body = f"""
        <p class="greeting">Halo <strong>{safe_nama}</strong>,</p>
        <p class="greeting">Bukti pembayaran yang Anda unggah tidak dapat diverifikasi.</p>
        {notes_html}
        <p class="info">Silakan unggah ulang bukti transfer yang valid melalui dashboard Anda.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Bukti Pembayaran {EVENT_NAME} Ditolak",
        html_content=_render(
            "linear-gradient(135deg, #b91c1c 0%, #ef4444 100%)", EVENT_NAME, body
        ),
    )
