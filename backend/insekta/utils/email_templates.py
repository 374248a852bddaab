from datetime import datetime
from html import escape

# Mail clients only honour inline styles
STYLES = {
    "container": "font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; "
                 "border: 1px solid #e0e0e0; border-radius: 8px; overflow: hidden;",
    "header": "background-color: #0056b3; padding: 20px; text-align: center;",
    "header_text": "color: #ffffff; font-size: 24px; font-weight: bold; margin: 0;",
    "content": "padding: 30px; background-color: #ffffff; color: #333333; line-height: 1.6;",
    "button": "display: inline-block; padding: 12px 24px; background-color: #ff9900; color: #ffffff; "
              "text-decoration: none; border-radius: 5px; font-weight: bold; margin-top: 20px;",
    "footer": "background-color: #f4f4f4; padding: 15px; text-align: center; font-size: 12px; color: #888888;",
    "warning": "background-color: #fff3cd; border: 1px solid #ffeeba; padding: 10px; margin-top: 20px; "
               "font-size: 14px; color: #856404; border-radius: 4px;",
}


def wrap_email(content: str) -> str:
    return f"""
    <div style="{STYLES['container']}">
      <div style="{STYLES['header']}">
        <h1 style="{STYLES['header_text']}">INSEKTA</h1>
      </div>
      <div style="{STYLES['content']}">
        {content}
      </div>
      <div style="{STYLES['footer']}">
        <p>&copy; {datetime.now().year} PT Insekta Fokustama. All rights reserved.</p>
        <p>Professional Pest Control Services</p>
      </div>
    </div>
    """


def welcome_user_template(name: str, email: str, password: str, login_url: str) -> str:
    """Mail for accounts created by an admin, carrying the temporary password"""
    content = f"""
    <h2>Selamat Datang di Insekta Dashboard!</h2>
    <p>Halo <strong>{escape(name)}</strong>,</p>
    <p>Akun Anda telah berhasil dibuat oleh Administrator. Berikut adalah kredensial login Anda:</p>

    <div style="background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin: 20px 0;">
      <p style="margin: 5px 0;"><strong>Email:</strong> {escape(email)}</p>
      <p style="margin: 5px 0;"><strong>Password Sementara:</strong>
        <span style="font-family: monospace; font-size: 16px; background: #eee; padding: 2px 5px;">{escape(password)}</span></p>
    </div>

    <div style="{STYLES['warning']}">
      <strong>Penting:</strong> Demi keamanan, Anda diwajibkan untuk mengganti password ini saat pertama kali login.
    </div>

    <div style="text-align: center;">
      <a href="{escape(login_url, quote=True)}" style="{STYLES['button']}">Login ke Dashboard</a>
    </div>
    """
    return wrap_email(content)
