"""
Tests para el módulo de Contactos

Cubre:
- CRUD de proveedores y clientes
- Unicidad de email
- Búsquedas, filtro por tipo y orden
- Permisos (borrado solo managers)
"""

import pytest

from app.modules.contacts.models import Contact, ContactType, PreferredContactMethod


# ===== FIXTURES =====

@pytest.fixture
def sample_contact_data():
    """Datos de ejemplo para crear un proveedor"""
    return {
        "contact_name": "Marie Supplier",
        "company_name": "Lake Kivu Fisheries",
        "email": "marie@kivufish.test",
        "phone_number": "+250788555000",
        "contact_type": ContactType.SUPPLIER.value,
        "preferred_contact_method": PreferredContactMethod.BOTH.value,
        "notes": "Delivers on Mondays",
    }


@pytest.fixture
def stored_contacts(db_session, admin_user):
    contacts = [
        Contact(contact_name="Zoe Buyer", contact_type="customer", email="zoe@test.io", added_by=admin_user.user_id),
        Contact(contact_name="Adam Trader", company_name="Fresh Catch", contact_type="supplier", added_by=admin_user.user_id),
        Contact(contact_name="Mia Client", contact_type="customer"),
    ]
    db_session.add_all(contacts)
    db_session.commit()
    return contacts


# ===== TESTS DE ENDPOINTS =====

class TestContactCrud:
    """Tests de alta, lectura, edición y borrado"""

    def test_create_contact(self, client, employee_user, employee_headers, sample_contact_data):
        """Test creación de contacto con los datos completos"""
        response = client.post("/api/contacts/", json=sample_contact_data, headers=employee_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["contact_type"] == "supplier"
        assert data["preferred_contact_method"] == "both"
        assert data["email_notifications"] is True
        assert data["total_messages_sent"] == 0
        assert data["added_by"] == str(employee_user.user_id)

    def test_create_defaults(self, client, employee_headers):
        """Test valores por defecto: cliente, contacto por email"""
        response = client.post("/api/contacts/", json={"contact_name": "Walk In"}, headers=employee_headers)
        data = response.json()["data"]
        assert data["contact_type"] == ContactType.CUSTOMER.value
        assert data["preferred_contact_method"] == PreferredContactMethod.EMAIL.value

    def test_duplicate_email(self, client, employee_headers, sample_contact_data):
        """Test email duplicado devuelve 409"""
        client.post("/api/contacts/", json=sample_contact_data, headers=employee_headers)
        sample_contact_data["contact_name"] = "Another Name"
        response = client.post("/api/contacts/", json=sample_contact_data, headers=employee_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "Contact with this email already exists"

    def test_invalid_email(self, client, employee_headers):
        response = client.post(
            "/api/contacts/", json={"contact_name": "Bad", "email": "not-an-email"}, headers=employee_headers
        )
        assert response.status_code == 400

    def test_update_contact(self, client, stored_contacts, employee_headers):
        contact = stored_contacts[0]
        response = client.put(
            f"/api/contacts/{contact.contact_id}",
            json={"phone_number": "0788111222", "contact_type": "supplier"},
            headers=employee_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["contact_type"] == "supplier"
        assert response.json()["data"]["contact_name"] == "Zoe Buyer"

    def test_update_to_taken_email(self, client, stored_contacts, employee_headers):
        response = client.put(
            f"/api/contacts/{stored_contacts[1].contact_id}",
            json={"email": "zoe@test.io"},
            headers=employee_headers,
        )
        assert response.status_code == 409

    def test_delete_requires_manager(self, client, stored_contacts, employee_headers, manager_headers):
        contact_id = stored_contacts[2].contact_id
        assert client.delete(f"/api/contacts/{contact_id}", headers=employee_headers).status_code == 403
        assert client.delete(f"/api/contacts/{contact_id}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/contacts/{contact_id}", headers=manager_headers).status_code == 404


class TestContactListing:
    """Tests de búsqueda, filtros y orden"""

    def test_default_order_by_name(self, client, stored_contacts, employee_headers):
        body = client.get("/api/contacts/", headers=employee_headers).json()
        assert [c["contact_name"] for c in body["data"]] == ["Adam Trader", "Mia Client", "Zoe Buyer"]

    def test_filter_by_type(self, client, stored_contacts, employee_headers):
        body = client.get("/api/contacts/?contact_type=customer", headers=employee_headers).json()
        assert body["pagination"]["total"] == 2

    def test_search_by_company(self, client, stored_contacts, employee_headers):
        body = client.get("/api/contacts/?search=fresh", headers=employee_headers).json()
        assert [c["contact_name"] for c in body["data"]] == ["Adam Trader"]

    def test_descending_order(self, client, stored_contacts, employee_headers):
        body = client.get("/api/contacts/?sortOrder=desc", headers=employee_headers).json()
        assert body["data"][0]["contact_name"] == "Zoe Buyer"
