# SPDX-License-Identifier: GPL-3.0-only
"""HTML email bodies for verification codes, one layout per role."""

from html import escape

from otp_core.types import Purpose

CUSTOMER_PURPOSE_TEXTS = {
    Purpose.REGISTRATION: "complete your registration",
    Purpose.LOGIN: "log into your account",
    Purpose.PASSWORD_RESET: "reset your password",
    Purpose.PROFILE_UPDATE: "update your profile",
}

VENDOR_PURPOSE_TEXTS = {
    Purpose.REGISTRATION: "complete your vendor registration",
    Purpose.LOGIN: "log into your vendor account",
    Purpose.PASSWORD_RESET: "reset your vendor password",
    Purpose.PROFILE_UPDATE: "update your vendor profile",
}

_HEAD = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background-color: #f8f9fa; padding: 20px; border-radius: 10px; border: 1px solid #e9ecef;">
"""

_TAIL = """  </div>
</body>
</html>
"""


def _list_items(items, color: str) -> str:
    return "\n".join(
        f'        <li style="color: {color};">{escape(item)}</li>' for item in items
    )


def customer_verification_email(
    customer_name: str,
    verification_code: str,
    purpose: Purpose,
    expiry_time: str,
    company_name: str,
) -> str:
    purpose_text = CUSTOMER_PURPOSE_TEXTS.get(purpose, "verify your account")
    security_items = [
        f"This code expires at {expiry_time}",
        "Only use this code on our official website",
        "Never share this code with anyone",
        "If you didn't request this, please ignore this email",
    ]
    features = [
        "Browse thousands of products",
        "Add items to your wishlist",
        "Track your orders in real-time",
        "Enjoy exclusive customer deals",
    ]

    return (
        _HEAD.format(title="Customer Email Verification")
        + f"""    <div style="text-align: center; margin-bottom: 30px;">
      <h1 style="color: #007bff; margin: 0; font-size: 28px; font-weight: bold;">{escape(company_name)}</h1>
      <p style="margin: 5px 0 0 0; color: #6c757d; font-size: 14px;">Customer Account Verification</p>
    </div>
    <div style="background-color: white; padding: 30px; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1);">
      <h2 style="color: #212529; margin-top: 0; font-size: 24px;">Hello {escape(customer_name)}!</h2>
      <p style="color: #495057; font-size: 16px; margin-bottom: 25px;">
        We received a request to {purpose_text}. Please use the verification code below to proceed.
      </p>
      <div style="background-color: #e7f3ff; border: 2px solid #007bff; border-radius: 8px; padding: 20px; text-align: center; margin-bottom: 25px;">
        <h3 style="margin: 0 0 10px 0; color: #0056b3; font-size: 18px;">Your Verification Code</h3>
        <div style="font-size: 32px; font-weight: bold; color: #007bff; letter-spacing: 8px; font-family: monospace; background-color: white; padding: 15px; border-radius: 6px; border: 1px solid #007bff;">{escape(verification_code)}</div>
      </div>
      <div style="background-color: #f8f9fa; border: 1px solid #dee2e6; border-radius: 6px; padding: 15px; margin-bottom: 20px;">
        <h4 style="margin: 0 0 10px 0; color: #495057; font-size: 16px;">What you can do:</h4>
        <ul style="margin: 0; padding: 0 0 0 20px;">
{_list_items(features, "#6c757d")}
        </ul>
      </div>
      <div style="background-color: #fff3cd; border: 1px solid #ffeaa7; border-radius: 6px; padding: 15px; margin-bottom: 20px;">
        <h4 style="margin: 0 0 10px 0; color: #856404; font-size: 16px;">Security Information</h4>
        <ul style="margin: 0; padding: 0 0 0 20px;">
{_list_items(security_items, "#856404")}
        </ul>
      </div>
      <p style="color: #6c757d; font-size: 14px; margin-bottom: 0;">
        If you're having trouble with your account, please contact our customer support team.
      </p>
    </div>
    <div style="text-align: center; margin-top: 20px; padding: 15px; border-top: 1px solid #dee2e6;">
      <p style="margin: 0; color: #6c757d; font-size: 12px;">
        This is an automated message for account verification.<br>Happy shopping!
      </p>
    </div>
"""
        + _TAIL
    )


def vendor_verification_email(
    vendor_name: str,
    verification_code: str,
    purpose: Purpose,
    expiry_time: str,
    company_name: str,
) -> str:
    purpose_text = VENDOR_PURPOSE_TEXTS.get(purpose, "verify your vendor account")
    security_items = [
        f"This code expires at {expiry_time}",
        "Only use this code on the vendor portal",
        "Keep your vendor credentials secure",
        "Contact support if this wasn't you",
    ]
    benefits = [
        "Manage your product catalog",
        "Track sales and analytics",
        "Process orders efficiently",
        "Access to vendor dashboard",
        "Customer communication tools",
    ]

    return (
        _HEAD.format(title="Vendor Account Verification")
        + f"""    <div style="text-align: center; margin-bottom: 30px;">
      <h1 style="color: #28a745; margin: 0; font-size: 28px; font-weight: bold;">{escape(company_name)} Vendor Portal</h1>
      <p style="margin: 5px 0 0 0; color: #6c757d; font-size: 14px;">Business Account Verification</p>
    </div>
    <div style="background-color: white; padding: 30px; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1);">
      <h2 style="color: #212529; margin-top: 0; font-size: 24px;">Hello {escape(vendor_name)}!</h2>
      <p style="color: #495057; font-size: 16px; margin-bottom: 25px;">
        We received a request to {purpose_text}. Please use the verification code below to continue with your vendor account access.
      </p>
      <div style="background-color: #d4edda; border: 2px solid #28a745; border-radius: 8px; padding: 20px; text-align: center; margin-bottom: 25px;">
        <h3 style="margin: 0 0 10px 0; color: #155724; font-size: 18px;">Vendor Verification Code</h3>
        <div style="font-size: 32px; font-weight: bold; color: #28a745; letter-spacing: 8px; font-family: monospace; background-color: white; padding: 15px; border-radius: 6px; border: 1px solid #28a745;">{escape(verification_code)}</div>
      </div>
      <div style="background-color: #f8f9fa; border: 1px solid #dee2e6; border-radius: 6px; padding: 15px; margin-bottom: 20px;">
        <h4 style="margin: 0 0 10px 0; color: #495057; font-size: 16px;">Vendor Benefits:</h4>
        <ul style="margin: 0; padding: 0 0 0 20px;">
{_list_items(benefits, "#6c757d")}
        </ul>
      </div>
      <div style="background-color: #fff3cd; border: 1px solid #ffeaa7; border-radius: 6px; padding: 15px; margin-bottom: 20px;">
        <h4 style="margin: 0 0 10px 0; color: #856404; font-size: 16px;">Security Notice</h4>
        <ul style="margin: 0; padding: 0 0 0 20px;">
{_list_items(security_items, "#856404")}
        </ul>
      </div>
      <p style="color: #6c757d; font-size: 14px; margin-bottom: 0;">
        If you need assistance with your vendor account, please contact our vendor support team.
      </p>
    </div>
    <div style="text-align: center; margin-top: 20px; padding: 15px; border-top: 1px solid #dee2e6;">
      <p style="margin: 0; color: #6c757d; font-size: 12px;">
        This is an automated message for vendor account verification.<br>Success in your business!
      </p>
    </div>
"""
        + _TAIL
    )


def admin_verification_email(
    admin_name: str,
    verification_code: str,
    expiry_time: str,
    company_name: str,
) -> str:
    """Admin layout. Same lead sentence for every purpose."""
    security_items = [
        f"This code expires at {expiry_time}",
        "Never share this code with anyone",
        "Only use this code on official admin login pages",
        "If you didn't request this code, contact IT security immediately",
    ]

    return (
        _HEAD.format(title="Admin Email Verification")
        + f"""    <div style="text-align: center; margin-bottom: 30px;">
      <h1 style="color: #dc3545; margin: 0; font-size: 28px; font-weight: bold;">{escape(company_name)} Admin Portal</h1>
      <p style="margin: 5px 0 0 0; color: #6c757d; font-size: 14px;">Administrative Access Verification</p>
    </div>
    <div style="background-color: white; padding: 30px; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1);">
      <h2 style="color: #212529; margin-top: 0; font-size: 24px;">Hello {escape(admin_name)}!</h2>
      <p style="color: #495057; font-size: 16px; margin-bottom: 25px;">
        You have requested admin access verification. Please use the verification code below to complete your login process.
      </p>
      <div style="background-color: #fff3cd; border: 2px solid #ffc107; border-radius: 8px; padding: 20px; text-align: center; margin-bottom: 25px;">
        <h3 style="margin: 0 0 10px 0; color: #856404; font-size: 18px;">Admin Verification Code</h3>
        <div style="font-size: 32px; font-weight: bold; color: #dc3545; letter-spacing: 8px; font-family: monospace; background-color: white; padding: 15px; border-radius: 6px; border: 1px solid #ffc107;">{escape(verification_code)}</div>
      </div>
      <div style="background-color: #f8d7da; border: 1px solid #f5c6cb; border-radius: 6px; padding: 15px; margin-bottom: 20px;">
        <h4 style="margin: 0 0 10px 0; color: #721c24; font-size: 16px;">Security Notice</h4>
        <ul style="margin: 0; padding: 0 0 0 20px;">
{_list_items(security_items, "#721c24")}
        </ul>
      </div>
      <p style="color: #6c757d; font-size: 14px; margin-bottom: 0;">
        If you're having trouble accessing your admin account, please contact the system administrator or IT support team.
      </p>
    </div>
    <div style="text-align: center; margin-top: 20px; padding: 15px; border-top: 1px solid #dee2e6;">
      <p style="margin: 0; color: #6c757d; font-size: 12px;">
        This is an automated message for admin account verification.<br>For security purposes, please do not reply to this email.
      </p>
    </div>
"""
        + _TAIL
    )
