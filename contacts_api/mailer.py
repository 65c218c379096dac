import logging
import smtplib
import ssl
from email.message import EmailMessage

from contacts_api import config

logger = logging.getLogger(__name__)


class MailerError(Exception):
    pass


def verification_url(token: str) -> str:
    return f"{config.BASE_URL}/verify/{token}"


def build_verification_message(email: str, token: str) -> EmailMessage:
    """
    Формує лист з посиланням для підтвердження реєстрації.

    :param email: Електронна пошта отримувача.
    :param token: Токен підтвердження.
    :return: Готове повідомлення з текстовою та HTML частинами.
    """
    url = verification_url(token)
    message = EmailMessage()
    message["Subject"] = "Verify your email"
    message["From"] = config.EMAIL_FROM
    message["To"] = email
    message.set_content(f"Click here to verify your email: {url}")
    message.add_alternative(
        f'<p>Click <a href="{url}">here</a> to verify your email.</p>',
        subtype="html",
    )
    return message


def _deliver(message: EmailMessage) -> None:
    if config.SMTP_SECURE:
        server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, context=ssl.create_default_context())
    else:
        server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT)
    with server:
        if not config.SMTP_SECURE:
            server.starttls(context=ssl.create_default_context())
        if config.EMAIL_USER:
            server.login(config.EMAIL_USER, config.EMAIL_PASS)
        server.send_message(message)


def send_email(message: EmailMessage) -> None:
    if not config.SMTP_HOST:
        logger.warning(
            "SMTP_HOST is not set, email to %s not sent: %s",
            message["To"],
            message.get_body(("plain",)).get_content().strip(),
        )
        return
    try:
        _deliver(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send email to %s: %s", message["To"], exc)
        raise MailerError(str(exc)) from exc
    logger.info("Email sent to %s", message["To"])


def send_verification_email(email: str, token: str) -> None:
    """
    Надсилає лист підтвердження реєстрації.

    Викликається з синхронних обробників, які FastAPI виконує у пулі потоків.

    :raises MailerError: Якщо SMTP сервер відхилив або не прийняв лист.
    """
    send_email(build_verification_message(email, token))
