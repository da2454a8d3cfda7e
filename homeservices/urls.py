from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AddressViewSet,
    AdminBookingListView,
    AdminComplaintListView,
    AdminKYCPendingView,
    AdminUserListView,
    AdminWorkerListView,
    BookingViewSet,
    ComplaintViewSet,
    ProfileView,
    ReviewViewSet,
    ServiceViewSet,
    WorkerReviewListView,
    WorkerViewSet,
    admin_complaint_status_view,
    admin_kyc_decision_view,
    admin_login_view,
    admin_stats_view,
    admin_suspend_worker_view,
    admin_verify_worker_view,
    analytics_overview_view,
    dashboard_stats_view,
    dashboard_view,
    health_view,
    login_view,
    mark_notification_read_view,
    notifications_view,
    register_view,
    worker_analytics_view,
)

router = DefaultRouter()
router.register(r'addresses', AddressViewSet, basename='address')
router.register(r'services', ServiceViewSet, basename='service')
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'workers', WorkerViewSet, basename='worker')
router.register(r'reviews', ReviewViewSet, basename='review')
router.register(r'complaints', ComplaintViewSet, basename='complaint')

admin_patterns = [
    path('stats/', admin_stats_view, name='admin-stats'),
    path('bookings/', AdminBookingListView.as_view(), name='admin-bookings'),
    path('complaints/', AdminComplaintListView.as_view(), name='admin-complaints'),
    path('complaints/<uuid:pk>/status/', admin_complaint_status_view, name='admin-complaint-status'),
    path('users/', AdminUserListView.as_view(), name='admin-users'),
    path('workers/', AdminWorkerListView.as_view(), name='admin-workers'),
    path('workers/<uuid:pk>/verify/', admin_verify_worker_view, name='admin-worker-verify'),
    path('workers/<uuid:pk>/suspend/', admin_suspend_worker_view, name='admin-worker-suspend'),
    path('kyc/pending/', AdminKYCPendingView.as_view(), name='admin-kyc-pending'),
    path('kyc/<uuid:worker_id>/status/', admin_kyc_decision_view, name='admin-kyc-status'),
]

urlpatterns = [
    path('health/', health_view, name='health'),
    path('auth/register/', register_view, name='register'),
    path('auth/login/', login_view, name='login'),
    path('auth/admin/login/', admin_login_view, name='admin-login'),
    path('users/profile/', ProfileView.as_view(), name='profile'),
    path('users/addresses/', AddressViewSet.as_view({'post': 'create'}), name='user-address-create'),
    path('users/dashboard-stats/', dashboard_stats_view, name='dashboard-stats'),
    path('reviews/worker/<uuid:worker_id>/', WorkerReviewListView.as_view(), name='worker-reviews'),
    path('dashboard/', dashboard_view, name='dashboard'),
    path('analytics/overview/', analytics_overview_view, name='analytics-overview'),
    path('analytics/worker/', worker_analytics_view, name='analytics-worker'),
    path('notifications/', notifications_view, name='notifications'),
    path('notifications/<str:notification_id>/read/', mark_notification_read_view, name='notification-read'),
    path('admin/', include(admin_patterns)),
    path('', include(router.urls)),
]
