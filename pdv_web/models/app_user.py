"""AppUser model - company users that log in with CPF + password."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from pdv_web.database import Base, Identifier


class AppUser(Base):
    """AppUser (usuario) - belongs to exactly one company."""

    __tablename__ = 'usuarios'
    __table_args__ = (
        UniqueConstraint('cnpj', 'login', name='usuarios_cnpj_login_key'),
    )

    id = Column(Identifier, primary_key=True, autoincrement=True)
    cnpj = Column(String(14), ForeignKey('empresas.cnpj'), nullable=False, index=True)
    login = Column(String(50), nullable=False)  # CPF digits
    cpf = Column(String(11), nullable=True)
    name = Column('nome', String(200), nullable=False)
    email = Column(String(255), nullable=True)
    password_hash = Column('senha_hash', String(255), nullable=False)
    role = Column('perfil', String(30), nullable=False, default='operador')
    permissions = Column('permissoes', JSON, nullable=True)
    active = Column('ativo', Boolean, nullable=False, default=True)
    origin = Column('origem', String(20), nullable=False, default='web')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<AppUser(id={self.id}, cnpj='{self.cnpj}', login='{self.login}')>"
