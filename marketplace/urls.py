from django.urls import path

from . import views

app_name = "marketplace"

urlpatterns = [
    path("", views.home, name="home"),
    path("login/", views.login_view, name="login"),
    path("register/", views.RegisterView.as_view(), name="register"),
    path("logout/", views.logout_view, name="logout"),
    path("product/<int:listing_id>/", views.product_detail, name="product_detail"),
    path("add-product/", views.add_product, name="add_product"),
    path("profile/", views.profile, name="profile"),
    path("profile/edit/", views.profile, name="profile_edit"),
    path("profile/my-products/", views.my_products, name="my_products"),
    path("profile/my-products/<int:listing_id>/delete/", views.delete_product, name="delete_product"),
    path("profile/my-products/<int:listing_id>/boost/", views.boost_product, name="boost_product"),
]
