from django.urls import path

from . import views

urlpatterns = [
    path('data', views.data_feed, name='data_feed'),
    path('api/v1/data', views.data_feed, name='data_feed_v1'),
    path('proxy', views.relay, name='relay'),
]
