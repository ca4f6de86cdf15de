import logging
import re
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from html import escape
from pathlib import Path
from urllib.parse import quote

from fastapi import Request

from quickblog.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "email_templates"


class EmailNotConfiguredError(RuntimeError):
    pass


class EmailClient:
    """SMTP sender for transactional email.

    ``configured`` is decided once at construction. An unconfigured client
    never tries to connect; ``send`` raises ``EmailNotConfiguredError``.
    """

    def __init__(
        self,
        server: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str = "QuickBlog",
        use_ssl: bool = False,
        timeout: float = 30.0,
    ):
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.use_ssl = use_ssl
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.server and self.username and self.password)

    @classmethod
    def from_settings(cls) -> "EmailClient":
        client = cls(
            server=settings.MAIL_SERVER,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            from_email=settings.MAIL_FROM,
            from_name=settings.MAIL_FROM_NAME,
            use_ssl=settings.MAIL_SSL,
        )
        if client.configured:
            logger.info("Email service initialized (%s:%s)", client.server, client.port)
        else:
            logger.warning("Email service disabled (MAIL_USERNAME / MAIL_PASSWORD not configured)")
        return client

    def send(self, to: str, subject: str, html: str) -> None:
        """Send one message. Raises on any delivery failure."""
        if not self.configured:
            raise EmailNotConfiguredError("Email service not configured")

        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))

        smtp_class = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        with smtp_class(self.server, self.port, timeout=self.timeout) as server:
            if not self.use_ssl:
                server.starttls()
            server.login(self.username, self.password)
            server.sendmail(self.from_email, [to], msg.as_string())
        logger.debug("Email sent to %s", to)


def strip_html(value: str) -> str:
    return re.sub(r"<[^>]*>", "", value or "").strip()


def render_template(name: str, replacements: dict) -> str:
    template = (TEMPLATES_DIR / name).read_text(encoding="utf-8")
    for placeholder, value in replacements.items():
        template = template.replace("{{" + placeholder + "}}", value)
    return template


def unsubscribe_url(email: str) -> str:
    return f"{settings.CLIENT_URL}/unsubscribe?email={quote(email)}"


def _blog_replacements(blog, recipient: str) -> dict:
    preview = strip_html(blog.description)
    if len(preview) > 200:
        preview = preview[:200] + "..."
    category = blog.category.value if hasattr(blog.category, "value") else blog.category
    image_block = ""
    if blog.image:
        image_block = (
            f'<tr><td style="padding: 0;"><img src="{escape(blog.image)}" alt="{escape(blog.title)}" '
            'style="width: 100%; height: auto; display: block; max-height: 300px; object-fit: cover;"></td></tr>'
        )
    subtitle_block = ""
    if blog.sub_title:
        subtitle_block = (
            '<p style="margin: 0 0 20px 0; color: #4a5568; font-size: 16px; line-height: 1.5;">'
            f"{escape(blog.sub_title)}</p>"
        )
    return {
        "title": escape(blog.title),
        "category": escape(category or "General"),
        "image_block": image_block,
        "subtitle_block": subtitle_block,
        "preview": escape(preview),
        "blog_url": f"{settings.CLIENT_URL}/blog/{blog.id}",
        "client_url": settings.CLIENT_URL,
        "unsubscribe_url": unsubscribe_url(recipient),
    }


def new_blog_email(blog, recipient: str) -> tuple[str, str]:
    """Return ``(subject, html)`` announcing a newly published blog."""
    return f"New Blog: {blog.title}", render_template("new_blog_email.html", _blog_replacements(blog, recipient))


def blog_update_email(blog, recipient: str) -> tuple[str, str]:
    return f"Updated: {blog.title}", render_template("blog_update_email.html", _blog_replacements(blog, recipient))


def welcome_email(recipient: str) -> tuple[str, str]:
    html = render_template(
        "welcome_email.html",
        {"client_url": settings.CLIENT_URL, "unsubscribe_url": unsubscribe_url(recipient)},
    )
    return "Welcome to QuickBlog Newsletter!", html


def get_email_client(request: Request) -> EmailClient:
    """FastAPI dependency; the client is built once in the app lifespan."""
    client = getattr(request.app.state, "email_client", None)
    if client is None:
        client = EmailClient.from_settings()
        request.app.state.email_client = client
    return client
