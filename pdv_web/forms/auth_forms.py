"""
Forms for the landing page, login and company registration.
"""
from flask_wtf import FlaskForm
from wtforms import BooleanField, EmailField, PasswordField, StringField
from wtforms.validators import DataRequired, EqualTo, Length, Optional, Regexp, ValidationError

from pdv_web.utils.tenant_key import CNPJ_LENGTH, CPF_LENGTH, normalize

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def digit_count(count, message):
    """Validator: the field must hold exactly `count` digits once punctuation is removed."""
    def _check(form, field):
        if len(normalize(field.data)) != count:
            raise ValidationError(message)
    return _check


class CompanyLookupForm(FlaskForm):
    """Add a company to the landing page list by CNPJ."""

    cnpj = StringField(
        'CNPJ',
        validators=[
            DataRequired(message='Informe o CNPJ'),
            digit_count(CNPJ_LENGTH, 'CNPJ deve ter 14 dígitos'),
        ],
        render_kw={'placeholder': 'Digite o CNPJ da empresa', 'autofocus': True}
    )


class LoginForm(FlaskForm):
    """CPF + password login for one company."""

    cpf = StringField(
        'CPF',
        validators=[DataRequired(message='Informe o CPF')],
        render_kw={'placeholder': '000.000.000-00'}
    )

    password = PasswordField(
        'Senha',
        validators=[DataRequired(message='Informe a senha')],
        render_kw={'placeholder': 'Sua senha'}
    )

    remember = BooleanField('Lembrar meus dados neste navegador')


class RegistrationForm(FlaskForm):
    """Company data followed by the administrator account."""

    cnpj = StringField(
        'CNPJ',
        validators=[
            DataRequired(message='Informe o CNPJ'),
            digit_count(CNPJ_LENGTH, 'CNPJ deve ter 14 dígitos'),
        ],
        render_kw={'placeholder': '00.000.000/0000-00'}
    )
    legal_name = StringField(
        'Razão Social',
        validators=[DataRequired(message='A razão social é obrigatória'), Length(max=200)],
        render_kw={'placeholder': 'Nome da empresa'}
    )
    trade_name = StringField(
        'Nome Fantasia',
        validators=[Optional(), Length(max=200)],
        render_kw={'placeholder': 'Nome comercial'}
    )
    city = StringField('Cidade', validators=[Optional(), Length(max=100)])
    state = StringField(
        'UF',
        validators=[Optional(), Length(min=2, max=2, message='UF deve ter 2 letras')],
        render_kw={'placeholder': 'RS', 'maxlength': 2}
    )
    phone = StringField(
        'Telefone',
        validators=[Optional(), Length(max=20)],
        render_kw={'placeholder': '(00) 00000-0000'}
    )
    email = EmailField(
        'E-mail',
        validators=[Optional(), Regexp(EMAIL_PATTERN, message='E-mail inválido')],
        render_kw={'placeholder': 'email@empresa.com'}
    )

    admin_name = StringField(
        'Nome completo',
        validators=[DataRequired(message='O nome é obrigatório'), Length(max=200)],
        render_kw={'placeholder': 'Seu nome'}
    )
    admin_cpf = StringField(
        'CPF',
        validators=[
            DataRequired(message='Informe o CPF'),
            digit_count(CPF_LENGTH, 'CPF deve ter 11 dígitos'),
        ],
        render_kw={'placeholder': '000.000.000-00'}
    )
    password = PasswordField(
        'Senha',
        validators=[
            DataRequired(message='Crie uma senha'),
            Length(min=6, message='A senha deve ter pelo menos 6 caracteres'),
        ],
        render_kw={'placeholder': 'Crie uma senha'}
    )
    password_confirm = PasswordField(
        'Confirmar senha',
        validators=[
            DataRequired(message='Repita a senha'),
            EqualTo('password', message='As senhas não conferem'),
        ],
        render_kw={'placeholder': 'Repita a senha'}
    )
