from sqlalchemy import select

from backoffice.models.cms_page import CmsPage
from backoffice.models.faq import Faq
from backoffice.models.geo import Country
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.services.list_query import (
    Listing,
    boolean_filter,
    int_filter,
    prefix_filter,
    related_contains_filter,
    related_prefix_filter,
    uuid_filter,
)

_user_country_name = select(Country.name).where(Country.id == User.country_id).correlate(User).scalar_subquery()

USER_LISTING = Listing(
    label="Users",
    default_sort=User.created_at,
    filters={
        "id": uuid_filter(User.id),
        "fullName": prefix_filter(User.full_name),
        "email": prefix_filter(User.email),
        "phoneNumber": prefix_filter(User.phone_number),
        "isActive": boolean_filter(User.is_active),
        "country": related_prefix_filter(User.country, Country.name),
        # Roles are multi-valued, so membership uses substring match.
        "roles": related_contains_filter(User.roles, Role.name),
    },
    sort_columns={
        "fullName": User.full_name,
        "email": User.email,
        "phoneNumber": User.phone_number,
        "dateOfBirth": User.date_of_birth,
        "country": _user_country_name,
        "createdAt": User.created_at,
        "isActive": User.is_active,
    },
)

ROLE_LISTING = Listing(
    label="Roles",
    default_sort=Role.created_at,
    filters={
        "id": uuid_filter(Role.id),
        "name": prefix_filter(Role.name),
        "description": prefix_filter(Role.description),
        "isActive": boolean_filter(Role.is_active),
    },
    sort_columns={
        "name": Role.name,
        "description": Role.description,
        "isActive": Role.is_active,
        "createdAt": Role.created_at,
    },
)

CMS_LISTING = Listing(
    label="CMS Pages",
    default_sort=CmsPage.created_at,
    filters={
        "id": int_filter(CmsPage.id),
        "key": prefix_filter(CmsPage.key),
        "title": prefix_filter(CmsPage.title),
        "metaKeyword": prefix_filter(CmsPage.meta_keyword),
        "isActive": boolean_filter(CmsPage.is_active),
    },
    sort_columns={
        "key": CmsPage.key,
        "title": CmsPage.title,
        "metaKeyword": CmsPage.meta_keyword,
        "isActive": CmsPage.is_active,
        "createdAt": CmsPage.created_at,
        "createdOn": CmsPage.created_at,
    },
)

FAQ_LISTING = Listing(
    label="FAQs",
    default_sort=Faq.created_at,
    filters={
        "id": int_filter(Faq.id),
        "question": prefix_filter(Faq.question),
        "answer": prefix_filter(Faq.answer),
        "isActive": boolean_filter(Faq.is_active),
    },
    sort_columns={
        "question": Faq.question,
        "answer": Faq.answer,
        "isActive": Faq.is_active,
        "createdAt": Faq.created_at,
        "createdOn": Faq.created_at,
    },
)
