# bureau/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('queue/join/', views.JoinQueueView.as_view(), name='queue_join'),
    path('queue/list/', views.ActiveQueueView.as_view(), name='queue_list'),
    path('queue/<int:queue_id>/cancel/', views.CancelQueueEntryView.as_view(), name='queue_cancel'),
    path('teller/call-next/', views.CallNextView.as_view(), name='teller_call_next'),
    path('teller/transaction/', views.ExecuteTransactionView.as_view(), name='teller_transaction'),
    path('teller/history/', views.TellerHistoryView.as_view(), name='teller_history'),
    path('currencies/', views.RateBoardView.as_view(), name='rate_board'),
    path('admin/inventory/', views.InventoryView.as_view(), name='admin_inventory'),
    path('admin/inventory/<str:currency_code>/adjust/', views.AdjustStockView.as_view(), name='admin_adjust_stock'),
    path('admin/notifications/', views.NotificationsView.as_view(), name='admin_notifications'),
]
