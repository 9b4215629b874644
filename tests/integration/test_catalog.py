"""
Integration tests for the product catalog: pricing on save, soft delete and
tenant scoping.
"""
import pytest
from decimal import Decimal

from pdv_web.models import Product
from pdv_web.services.catalog_service import ProductEditor


def _product_form(**overrides):
    data = {
        'code': '789100',
        'name': 'arroz tipo 1',
        'category': 'mercearia',
        'unit': 'kg',
        'stock_qty': '10',
        'cost_price': '10',
        'margin_percent': '25',
        'sale_price': '',
        'driver': 'margin',
    }
    data.update(overrides)
    return data


@pytest.fixture
def product_a(session, company_a):
    """Product of company A (cost 100, margin 50, sale 150); returns its id."""
    product = ProductEditor(session).save(company_a, {
        'name': 'Feijão', 'cost_price': '100', 'margin_percent': '50', 'driver': 'margin',
    }, is_new=True)
    return product.id


@pytest.fixture
def product_b(session, company_b):
    """Product of company B; returns its id."""
    product = ProductEditor(session).save(company_b, {
        'name': 'Produto B', 'cost_price': '5', 'sale_price': '7', 'driver': 'sale_price',
    }, is_new=True)
    return product.id


class TestCreateProduct:

    def test_cost_and_margin_derive_sale_price(self, authenticated_client, company_a, session):
        response = authenticated_client.post(f'/{company_a}/produtos/novo', data=_product_form())
        assert response.status_code == 302
        assert response.headers['Location'].endswith(f'/{company_a}/produtos/')

        product = session.query(Product).filter_by(cnpj=company_a).one()
        assert product.sale_price == Decimal('12.50')
        assert product.margin_percent == Decimal('25')
        assert product.name == 'ARROZ TIPO 1'
        assert product.category == 'MERCEARIA'
        assert product.unit == 'KG'
        assert product.origin == 'web'
        assert product.local_id.startswith('web_')
        assert product.active is True

    def test_brazilian_number_format(self, authenticated_client, company_a, session):
        authenticated_client.post(f'/{company_a}/produtos/novo',
                                  data=_product_form(cost_price='1.234,50', margin_percent='10'))
        product = session.query(Product).filter_by(cnpj=company_a).one()
        assert product.cost_price == Decimal('1234.50')
        assert product.sale_price == Decimal('1357.95')

    def test_sale_price_driver_recomputes_margin(self, authenticated_client, company_a, session):
        authenticated_client.post(f'/{company_a}/produtos/novo',
                                  data=_product_form(cost_price='100', sale_price='130', driver='sale_price'))
        product = session.query(Product).filter_by(cnpj=company_a).one()
        assert product.sale_price == Decimal('130.00')
        assert product.margin_percent == Decimal('30')

    def test_zero_cost_keeps_margin_undefined(self, authenticated_client, company_a, session):
        authenticated_client.post(f'/{company_a}/produtos/novo',
                                  data=_product_form(cost_price='0', sale_price='9,90', driver='sale_price'))
        product = session.query(Product).filter_by(cnpj=company_a).one()
        assert product.sale_price == Decimal('9.90')
        assert product.margin_percent is None

    def test_name_is_required(self, authenticated_client, company_a, session):
        response = authenticated_client.post(f'/{company_a}/produtos/novo', data=_product_form(name=' '))
        assert response.status_code == 400
        assert 'O nome do produto é obrigatório' in response.get_data(as_text=True)
        assert session.query(Product).count() == 0

    def test_invalid_number(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/produtos/novo', data=_product_form(cost_price='dez'))
        assert response.status_code == 400
        assert 'Custo: valor numérico inválido' in response.get_data(as_text=True)

    def test_promotion_window_must_be_ordered(self, authenticated_client, company_a, session):
        response = authenticated_client.post(f'/{company_a}/produtos/novo', data=_product_form(
            promotion_active='on', promotional_price='9', promotion_start='2025-02-01', promotion_end='2025-01-01',
        ))
        assert response.status_code == 400
        assert session.query(Product).count() == 0

    def test_active_promotion_needs_price(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/produtos/novo',
                                             data=_product_form(promotion_active='on'))
        assert response.status_code == 400
        assert 'Informe o preço promocional' in response.get_data(as_text=True)

    def test_promotion_is_saved(self, authenticated_client, company_a, session):
        authenticated_client.post(f'/{company_a}/produtos/novo', data=_product_form(
            promotion_active='on', promotional_price='11,00', promotion_start='2025-01-01', promotion_end='2025-01-31',
        ))
        product = session.query(Product).filter_by(cnpj=company_a).one()
        assert product.promotion_active is True
        assert product.promotional_price == Decimal('11.00')
        assert product.promotion_end.isoformat() == '2025-01-31'


class TestEditProduct:

    def test_form_shows_stored_values(self, authenticated_client, company_a, product_a):
        response = authenticated_client.get(f'/{company_a}/produtos/{product_a}/editar')
        assert response.status_code == 200
        page = response.get_data(as_text=True)
        assert 'FEIJÃO' in page
        assert 'value="150,00"' in page

    def test_update_by_sale_price(self, authenticated_client, company_a, product_a, session):
        response = authenticated_client.post(f'/{company_a}/produtos/{product_a}/editar', data=_product_form(
            name='feijão preto', cost_price='100', margin_percent='50', sale_price='130', driver='sale_price',
        ))
        assert response.status_code == 302

        product = session.get(Product, product_a)
        assert product.name == 'FEIJÃO PRETO'
        assert product.sale_price == Decimal('130.00')
        assert product.margin_percent == Decimal('30')
        assert session.query(Product).count() == 1

    def test_thousands_survive_edit_round_trip(self, authenticated_client, company_a, session):
        product_id = ProductEditor(session).save(company_a, {
            'name': 'Geladeira', 'stock_qty': '2', 'cost_price': '1500', 'margin_percent': '10', 'driver': 'margin',
        }, is_new=True).id

        page = authenticated_client.get(f'/{company_a}/produtos/{product_id}/editar').get_data(as_text=True)
        assert 'value="1.500,00"' in page
        assert 'value="1.650,00"' in page

        authenticated_client.post(f'/{company_a}/produtos/{product_id}/editar', data=_product_form(
            name='geladeira', stock_qty='2', cost_price='1.500,00', margin_percent='10',
            sale_price='1.650,00', driver='sale_price',
        ))
        product = session.get(Product, product_id)
        assert product.cost_price == Decimal('1500.00')
        assert product.sale_price == Decimal('1650.00')
        assert product.stock_qty == 2

    def test_cannot_edit_other_company_product(self, authenticated_client, company_a, product_b, session):
        response = authenticated_client.get(f'/{company_a}/produtos/{product_b}/editar')
        assert response.status_code == 302

        response = authenticated_client.post(f'/{company_a}/produtos/{product_b}/editar',
                                             data=_product_form(name='invadido'))
        assert response.status_code == 302
        assert session.get(Product, product_b).name == 'PRODUTO B'


class TestDeleteProduct:

    def test_soft_delete(self, authenticated_client, company_a, product_a, session):
        response = authenticated_client.post(f'/{company_a}/produtos/{product_a}/excluir')
        assert response.status_code == 302

        product = session.get(Product, product_a)
        assert product is not None
        assert product.active is False

        table = authenticated_client.get(f'/{company_a}/produtos/', headers={'HX-Request': 'true'})
        assert 'FEIJÃO' not in table.get_data(as_text=True)

    def test_cannot_delete_other_company_product(self, authenticated_client, company_a, product_b, session):
        authenticated_client.post(f'/{company_a}/produtos/{product_b}/excluir')
        assert session.get(Product, product_b).active is True


class TestListProducts:

    def test_lists_only_own_products(self, authenticated_client, company_a, product_a, product_b):
        page = authenticated_client.get(f'/{company_a}/produtos/').get_data(as_text=True)
        assert 'FEIJÃO' in page
        assert 'PRODUTO B' not in page
        assert 'R$ 150,00' in page

    def test_search_partial(self, authenticated_client, company_a, product_a):
        response = authenticated_client.get(f'/{company_a}/produtos/?q=zzz', headers={'HX-Request': 'true'})
        page = response.get_data(as_text=True)
        assert 'Nenhum produto encontrado' in page
        assert '<html' not in page


class TestPricingPreview:

    def test_margin_edit_returns_sale_price(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/produtos/precos', data={
            'cost_price': '100', 'margin_percent': '50', 'sale_price': '', 'driver': 'margin',
        }, headers={'HX-Request': 'true'})
        assert response.status_code == 200
        page = response.get_data(as_text=True)
        assert 'id="sale_price"' in page
        assert 'value="150,00"' in page
        assert 'id="margin_percent"' not in page

    def test_sale_edit_with_zero_cost(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/produtos/precos', data={
            'cost_price': '0', 'margin_percent': '', 'sale_price': '10', 'driver': 'sale_price',
        }, headers={'HX-Request': 'true'})
        page = response.get_data(as_text=True)
        assert 'id="margin_percent"' in page
        assert 'id="sale_price"' not in page

    def test_promotion_discount(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/produtos/precos', data={
            'cost_price': '50', 'margin_percent': '100', 'sale_price': '100', 'driver': 'margin',
            'promotion_active': 'on', 'promotional_price': '80',
        }, headers={'HX-Request': 'true'})
        page = response.get_data(as_text=True)
        assert '20,00%' in page
        assert 'R$ 80,00' in page

    def test_invalid_number_shows_message(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/produtos/precos', data={
            'cost_price': 'x', 'driver': 'cost',
        }, headers={'HX-Request': 'true'})
        assert response.status_code == 200
        assert 'valor numérico inválido' in response.get_data(as_text=True)


class TestSaveMetrics:

    def test_saves_are_counted(self, authenticated_client, company_a):
        authenticated_client.post(f'/{company_a}/produtos/novo', data=_product_form())
        metrics = authenticated_client.get('/metrics').get_data(as_text=True)
        assert 'pdv_record_saves_total{kind="product",operation="create"}' in metrics
