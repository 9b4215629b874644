"""Flask application factory."""
from flask import Flask, request, redirect, url_for, flash, jsonify, render_template
from flask_wtf.csrf import CSRFProtect
from pdv_web.database import init_db, get_session
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # CSRF protection for every form and HTMX post
    CSRFProtect(app)

    from flask_wtf.csrf import CSRFError

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        if request.is_json or request.headers.get('HX-Request'):
            return jsonify({'status': 'error', 'message': 'A sessão expirou. Recarregue a página.'}), 400
        flash('O formulário expirou ou é inválido. Tente novamente.', 'warning')
        return redirect(request.referrer or '/')

    # Sentry error tracking in production
    sentry_dsn = app.config.get('SENTRY_DSN')
    if sentry_dsn and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus metrics instrumentation
    from pdv_web.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Credential checks behind a replaceable verifier
    from pdv_web.services.auth_service import StoreCredentialVerifier
    app.extensions['pdv_credential_verifier'] = StoreCredentialVerifier(get_session)

    # Jinja filters for Brazilian formatting
    from pdv_web.utils.formatters import (
        num_br, money_br, percent_br, input_br, date_br, datetime_br, cnpj_br, document_br, phone_br
    )
    app.jinja_env.filters['num_br'] = num_br
    app.jinja_env.filters['money_br'] = money_br
    app.jinja_env.filters['percent_br'] = percent_br
    app.jinja_env.filters['input_br'] = input_br
    app.jinja_env.filters['date_br'] = date_br
    app.jinja_env.filters['datetime_br'] = datetime_br
    app.jinja_env.filters['cnpj_br'] = cnpj_br
    app.jinja_env.filters['document_br'] = document_br
    app.jinja_env.filters['phone_br'] = phone_br

    # Error Handlers
    from pdv_web.exceptions import PdvError

    @app.errorhandler(PdvError)
    def handle_pdv_error(error):
        """Handle application exceptions not caught by a view."""
        app.logger.error(f"PdvError [{error.status_code}]: {error.message}")

        is_htmx = request.headers.get('HX-Request') == 'true'
        if is_htmx:
            return render_template('errors/_alert.html', message=error.message), error.status_code

        if request.is_json:
            return jsonify(error.to_dict()), error.status_code

        flash(error.message, 'danger')
        return redirect(request.referrer or '/')

    @app.errorhandler(404)
    def not_found_error(error):
        if request.is_json:
            return jsonify({'status': 'error', 'message': 'Not Found'}), 404
        return redirect(url_for('main.index'))

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        from werkzeug.exceptions import HTTPException
        if isinstance(error, HTTPException) and error.code != 500:
            return error

        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)

        if request.is_json:
            return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

        is_htmx = request.headers.get('HX-Request') == 'true'
        if is_htmx:
            return render_template('errors/_alert.html', message='Erro interno do servidor.'), 500

        return render_template('errors/500.html'), 500

    # Register blueprints
    from pdv_web.blueprints.main import main_bp
    from pdv_web.blueprints.metrics import metrics_bp
    from pdv_web.blueprints.auth import auth_bp
    from pdv_web.blueprints.dashboard import dashboard_bp
    from pdv_web.blueprints.catalog import catalog_bp
    from pdv_web.blueprints.customers import customers_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(metrics_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(customers_bp)

    # CLI commands
    from pdv_web.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
