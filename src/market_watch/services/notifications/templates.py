"""Message templates for triggered price alerts."""
from dataclasses import dataclass
from datetime import datetime
from html import escape

from market_watch.db import AlertDirection
from market_watch.schemas import AlertRead


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


def format_price(price: float) -> str:
    """Two decimals for prices >= 1, six below (sub-dollar tokens)."""
    if price >= 1:
        return f"{price:,.2f}"
    return f"{price:.6f}"


def _verb(direction: AlertDirection) -> str:
    return "risen above" if direction == AlertDirection.ABOVE else "fallen below"


def in_app_message(alert: AlertRead, price: float) -> str:
    return (
        f"{alert.asset_name} ({alert.asset_symbol}) has {_verb(alert.direction)} "
        f"${alert.target_price:.2f}! Current price: ${price:.2f}"
    )


def email_subject(alert: AlertRead) -> str:
    arrow = "↗" if alert.direction == AlertDirection.ABOVE else "↘"
    return f"{arrow} Price Alert: {alert.asset_symbol}"


def render_email(
    alert: AlertRead, price: float, triggered_at: datetime, dashboard_url: str
) -> EmailContent:
    verb = _verb(alert.direction)
    when = triggered_at.strftime("%Y-%m-%d %H:%M UTC")
    target = format_price(alert.target_price)
    current = format_price(price)
    color = "#16a34a" if alert.direction == AlertDirection.ABOVE else "#dc2626"

    text = (
        f"Price alert for {alert.asset_name} ({alert.asset_symbol})\n\n"
        f"{alert.asset_name} has {verb} your target price.\n\n"
        f"Target price:  ${target}\n"
        f"Current price: ${current}\n"
        f"Triggered at:  {when}\n\n"
        f"View your alerts: {dashboard_url}\n"
    )
    name = escape(alert.asset_name)
    symbol = escape(alert.asset_symbol)
    html = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {color};">Price Alert: {symbol}</h2>
  <p><strong>{name} ({symbol})</strong> has {verb} your target price.</p>
  <table style="border-collapse: collapse;">
    <tr><td style="padding: 4px 12px 4px 0;">Target price</td><td><strong>${target}</strong></td></tr>
    <tr><td style="padding: 4px 12px 4px 0;">Current price</td><td><strong style="color: {color};">${current}</strong></td></tr>
    <tr><td style="padding: 4px 12px 4px 0;">Triggered at</td><td>{when}</td></tr>
  </table>
  <p><a href="{escape(dashboard_url, quote=True)}">View your alerts</a></p>
  <p style="color: #6b7280; font-size: 12px;">This alert has been deactivated and will not fire again.</p>
</div>
"""
    return EmailContent(subject=email_subject(alert), text=text, html=html)
