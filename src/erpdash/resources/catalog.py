"""Catalog of ERP resources and their list filters."""

from typing import Dict, List

from erpdash.resources.service import ResourceSpec

_SPECS = [
    ResourceSpec(
        name="organizations",
        path="/organizations",
        label="organizations",
        singular="organization",
        filters={"company_id": "companyId", "name": "name"},
    ),
    ResourceSpec(
        name="companies",
        path="/companies",
        label="companies",
        singular="company",
        filters={"organization_id": "organizationId"},
        columns=("id", "name", "legal_tax_id"),
    ),
    ResourceSpec(
        name="clients",
        path="/clients",
        label="clients",
        singular="client",
        filters={"company_id": "companyId", "legal_name": "legal_name"},
        drop_false_flags=True,
        label_field="legal_name",
        code_field="client_code",
    ),
    ResourceSpec(
        name="suppliers",
        path="/suppliers",
        label="suppliers",
        singular="supplier",
        filters={
            "company_id": "companyId",
            "supplier_code": "supplier_code",
            "legal_name": "legal_name",
            "tax_document_type": "tax_document_type",
            "tax_document_number": "tax_document_number",
            "person_type": "person_type",
            "email": "email",
            "contact_person": "contact_person",
        },
        sync_path="/suppliers/sync",
        label_field="legal_name",
        code_field="supplier_code",
    ),
    ResourceSpec(
        name="products",
        path="/products",
        label="products",
        singular="product",
        filters={
            "company_id": "companyId",
            "product_name": "product_name",
            "sku": "sku",
            "category_id": "category_id",
            "brand_id": "brand_id",
            "unit_id": "unit_id",
            "default_warehouse_id": "default_warehouse_id",
            "manages_serials": "manages_serials",
            "manages_lots": "manages_lots",
            "is_tax_exempt": "is_tax_exempt",
            "show_in_ecommerce": "show_in_ecommerce",
            "show_in_sales_app": "show_in_sales_app",
            "is_active": "is_active",
        },
        sync_path="/products/sync",
        label_field="product_name",
        code_field="sku",
        columns=("id", "product_name", "sku", "base_price", "is_active"),
    ),
    ResourceSpec(
        name="zones",
        path="/zones",
        label="zones",
        singular="zone",
        filters={"zone_name": "zone_name", "zip_code": "zip_code"},
        label_field="zone_name",
        code_field="zip_code",
    ),
    ResourceSpec(
        name="currencies",
        path="/currencies",
        label="currencies",
        singular="currency",
        filters={
            "currency_name": "currency_name",
            "currency_code": "currency_code",
            "currency_symbol": "currency_symbol",
            "is_main_currency": "is_main_currency",
        },
        label_field="currency_name",
        code_field="currency_code",
        columns=("id", "currency_name", "currency_code", "currency_symbol", "is_main_currency"),
    ),
    ResourceSpec(
        name="warehouses",
        path="/warehouses",
        label="warehouses",
        singular="warehouse",
        filters={"company_id": "companyId"},
        sync_path="/warehouses/sync",
        prune_on_delete=True,
        requires_company=True,
        columns=("id", "name", "code", "companyBranchId", "is_active"),
    ),
    ResourceSpec(
        name="tax_types",
        path="/tax-types",
        label="tax types",
        singular="tax type",
        filters={
            "tax_name": "tax_name",
            "tax_code": "tax_code",
            "applies_to": "applies_to",
            "is_active": "is_active",
        },
        sync_path="/tax-types/sync",
        label_field="tax_name",
        code_field="tax_code",
        columns=("id", "tax_name", "tax_code", "default_rate", "is_active"),
    ),
    ResourceSpec(
        name="payment_methods",
        path="/payment-methods",
        label="payment methods",
        singular="payment method",
        filters={
            "method_name": "method_name",
            "description": "description",
            "is_active": "is_active",
        },
        label_field="method_name",
        code_field="external_code",
    ),
    ResourceSpec(
        name="payment_terms",
        path="/payment-terms",
        label="payment terms",
        singular="payment term",
        filters={
            "term_name": "term_name",
            "term_description": "term_description",
            "number_of_days": "number_of_days",
            "is_active": "is_active",
        },
        label_field="term_name",
        code_field=None,
        columns=("id", "term_name", "number_of_days", "is_active"),
    ),
    ResourceSpec(
        name="users",
        path="/user",
        label="users",
        singular="user",
        filters={"company_id": "companyId"},
        label_field="username",
        code_field="email",
    ),
    ResourceSpec(
        name="visits",
        path="/visits",
        label="visits",
        singular="visit",
        filters={
            "date_from": "date_from",
            "date_to": "date_to",
            "status": "status",
            "description": "description",
            "client_id": "clientId",
        },
        label_field="description",
        code_field=None,
        columns=("id", "clientId", "status", "start_datetime", "description"),
    ),
    ResourceSpec(
        name="company_branches",
        path="/company-branches",
        label="company branches",
        singular="company branch",
        filters={"company_id": "companyId", "name": "name", "code": "code"},
        requires_company=True,
        columns=("id", "name", "code", "main_phone", "is_central", "is_active"),
    ),
    ResourceSpec(
        name="brands",
        path="/brands",
        label="brands",
        singular="brand",
        filters={
            "brand_name": "brand_name",
            "description": "description",
            "is_active": "is_active",
        },
        label_field="brand_name",
        code_field="external_code",
        columns=("id", "brand_name", "description", "is_active"),
    ),
    ResourceSpec(
        name="product_categories",
        path="/product-categories",
        label="product categories",
        singular="product category",
        filters={
            "company_id": "companyId",
            "parent_category_id": "parentCategoryId",
            "category_name": "category_name",
            "category_code": "category_code",
            "is_active": "is_active",
            "show_in_ecommerce": "show_in_ecommerce",
            "show_in_sales_app": "show_in_sales_app",
        },
        sync_path="/product-categories/sync",
        label_field="category_name",
        code_field="category_code",
        columns=("id", "category_name", "category_code", "parentCategoryId", "is_active"),
    ),
    ResourceSpec(
        name="exchange_rates",
        path="/exchange-rates",
        label="exchange rates",
        singular="exchange rate",
        filters={
            "base_currency_id": "baseCurrencyId",
            "target_currency_id": "targetCurrencyId",
            "exchange_rate": "exchange_rate",
            "rate_date": "rate_date",
            "source": "source",
            "is_active": "is_active",
        },
        label_field="rate_date",
        code_field=None,
        columns=("id", "baseCurrencyId", "targetCurrencyId", "exchange_rate", "rate_date", "source"),
    ),
    ResourceSpec(
        name="bank_accounts",
        path="/bank-accounts",
        label="bank accounts",
        singular="bank account",
        filters={"company_id": "companyId", "name": "name", "code": "code"},
        requires_company=True,
        label_field="bank_name",
        code_field="account_number",
        columns=("id", "bank_name", "account_type", "account_number", "is_active"),
    ),
]

RESOURCES: Dict[str, ResourceSpec] = {spec.name: spec for spec in _SPECS}


def list_resource_names() -> List[str]:
    return sorted(RESOURCES)


def get_resource_spec(name: str) -> ResourceSpec:
    """
    Look up a resource by name. Dashes are accepted for underscores.

    Raises:
        KeyError: If the resource is unknown
    """
    key = name.strip().lower().replace("-", "_")
    try:
        return RESOURCES[key]
    except KeyError:
        raise KeyError(
            f"Unknown resource '{name}'. Known resources: {', '.join(list_resource_names())}"
        ) from None
