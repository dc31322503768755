from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_mailer, require_admin
from app.integrations.mailer import Mailer
from app.schemas.notification import EmailCheckIn, EmailCheckOut
from app.services import email_templates as templates

router = APIRouter(prefix="/api", tags=["notifications"])


# Diagnostic send to check the SMTP configuration
@router.post("/test-email", response_model=EmailCheckOut, dependencies=[Depends(require_admin)])
def send_test_email(payload: EmailCheckIn, mailer: Mailer = Depends(get_mailer)):
    if not payload.email:
        raise HTTPException(status_code=400, detail="Email required")

    ok = mailer.send(payload.email, "Test - Configuration Email", templates.configuration_check())
    if not ok:
        raise HTTPException(status_code=500, detail="Email could not be sent")
    return EmailCheckOut(message="Test email sent")
