"""API views for the home services marketplace."""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import generics, mixins, permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response

from .exceptions import Conflict
from .filters import AdminUserFilter, OpenJobFilter, WorkerFilter
from .models import (
    Booking,
    Complaint,
    CustomerProfile,
    InvalidTransition,
    Review,
    Service,
    User,
    WorkerProfile,
)
from .pagination import AdminListPagination
from .permissions import CanCreateService, IsAdminRole, IsCustomer, IsWorker
from .reporting import AdminReport, WorkerReport, report_for
from .serializers import (
    AccountWorkerSerializer,
    AddressSerializer,
    AdminUserSerializer,
    AdminWorkerSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    ComplaintSerializer,
    ComplaintStatusSerializer,
    CustomerProfileSerializer,
    KYCDecisionSerializer,
    KYCStatusByUserSerializer,
    KYCSubmitSerializer,
    LoginSerializer,
    OwnWorkerProfileSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    ServiceSerializer,
    UserSerializer,
    WorkerDetailSerializer,
    WorkerListSerializer,
    WorkerProfileSerializer,
    WorkerUpdateSerializer,
)
from .tokens import auth_payload

logger = logging.getLogger(__name__)

UUID_REGEX = r'[0-9a-fA-F-]{36}'
MAX_TIME_RANGE_DAYS = 36500


def _worker_profile(user: User) -> WorkerProfile:
    try:
        return user.worker_profile
    except WorkerProfile.DoesNotExist as exc:
        raise NotFound('Worker profile not found') from exc


def _customer_profile(user: User, create: bool = False) -> CustomerProfile:
    if create:
        profile, created = CustomerProfile.objects.get_or_create(user=user)
        if created:
            logger.info("Created customer profile for %s", user.pk)
        return profile
    try:
        return user.customer_profile
    except CustomerProfile.DoesNotExist as exc:
        raise NotFound('Customer profile not found') from exc


def _time_range(request) -> int:
    raw = request.query_params.get('time_range', '30')
    try:
        days = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError({'time_range': ['Must be a whole number of days.']}) from exc
    if days < 0:
        raise ValidationError({'time_range': ['Must not be negative.']})
    if days > MAX_TIME_RANGE_DAYS:
        raise ValidationError({'time_range': [f'Must be at most {MAX_TIME_RANGE_DAYS} days.']})
    return days


# Identity


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def register_view(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    if User.objects.filter(email=data['email']).exists():
        raise Conflict('User already exists')

    with transaction.atomic():
        user = User.objects.create_user(
            email=data['email'],
            password=data['password'],
            name=data['name'],
            phone=data.get('phone', ''),
            role=data['role'],
        )
        if user.is_customer:
            CustomerProfile.objects.create(user=user)
        elif user.is_worker:
            WorkerProfile.objects.create(
                user=user,
                profession=data.get('profession') or WorkerProfile.DEFAULT_PROFESSION,
                experience=data.get('experience') or 0,
                hourly_rate=data.get('hourly_rate') or WorkerProfile.DEFAULT_HOURLY_RATE,
                skills=[],
            )
    logger.info("Registered %s user %s", user.role, user.pk)
    return Response(auth_payload(user), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def login_view(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    user = authenticate(request, email=data['email'], password=data['password'])
    if not user:
        logger.warning("Rejected login for %s", data['email'])
        return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)
    role = data.get('role')
    if role and user.role != role:
        logger.warning("Rejected %s login for %s user %s", role, user.role, user.pk)
        return Response(
            {'error': f'Invalid credentials for {role.lower()} login'}, status=status.HTTP_401_UNAUTHORIZED
        )
    return Response(auth_payload(user))


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def admin_login_view(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    user = authenticate(request, email=data['email'], password=data['password'])
    if not user:
        logger.warning("Rejected admin login for %s", data['email'])
        return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)
    if not user.is_admin:
        return Response(
            {'error': 'Access denied. Admin privileges required.'}, status=status.HTTP_403_FORBIDDEN
        )
    return Response(auth_payload(user))


# Profiles


class ProfileView(generics.GenericAPIView):
    serializer_class = ProfileUpdateSerializer

    def get(self, request, *args, **kwargs):
        user = request.user
        data = UserSerializer(user).data
        try:
            data['customer_profile'] = CustomerProfileSerializer(user.customer_profile).data
        except CustomerProfile.DoesNotExist:
            data['customer_profile'] = None
        try:
            data['worker_profile'] = AccountWorkerSerializer(user.worker_profile).data
        except WorkerProfile.DoesNotExist:
            data['worker_profile'] = None
        bookings = user.bookings.select_related('service', 'customer', 'worker__user')[:10]
        data['bookings'] = BookingSerializer(bookings, many=True).data
        data['reviews'] = ReviewSerializer(user.reviews_written.select_related('customer', 'worker__user'), many=True).data
        return Response(data)

    def put(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = request.user
        for field in ('name', 'phone'):
            if field in data:
                setattr(user, field, data[field])
        user.save(update_fields=['name', 'phone'])

        if user.is_worker:
            worker_fields = [f for f in ('profession', 'experience', 'hourly_rate', 'skills') if f in data]
            if worker_fields:
                worker = _worker_profile(user)
                for field in worker_fields:
                    setattr(worker, field, data[field])
                worker.save(update_fields=worker_fields + ['updated_at'])
        return Response(UserSerializer(user).data)


@api_view(['GET'])
def dashboard_stats_view(request):
    if request.user.is_admin:
        return Response({})
    return Response(report_for(request.user).stats())


class AddressViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = AddressSerializer
    permission_classes = [IsCustomer]
    lookup_value_regex = UUID_REGEX
    filter_backends = []

    def get_queryset(self):
        create = self.action == 'create'
        return _customer_profile(self.request.user, create=create).addresses.all()

    def perform_create(self, serializer):
        profile = _customer_profile(self.request.user, create=True)
        make_default = serializer.validated_data.pop('is_default', False)
        address = serializer.save(customer=profile, is_default=False)
        if make_default:
            profile.set_default_address(address)

    def update(self, request, *args, **kwargs):
        kwargs['partial'] = True
        return super().update(request, *args, **kwargs)

    def perform_update(self, serializer):
        make_default = serializer.validated_data.pop('is_default', None)
        address = serializer.save()
        if make_default:
            address.customer.set_default_address(address)
        elif make_default is False and address.is_default:
            address.is_default = False
            address.save(update_fields=['is_default', 'updated_at'])

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response({'message': 'Address deleted successfully'})

    @action(detail=True, methods=['put'], url_path='default')
    def set_default(self, request, pk=None):
        address = self.get_object()
        address.customer.set_default_address(address)
        return Response(self.get_serializer(address).data)


# Catalog


class ServiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ServiceSerializer
    permission_classes = [CanCreateService]
    lookup_value_regex = UUID_REGEX
    queryset = Service.objects.all()

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == 'list':
            qs = qs.filter(is_active=True)
        return qs

    def perform_create(self, serializer):
        service = serializer.save()
        logger.info("Service %s created in category %s", service.pk, service.category)


# Booking lifecycle


class BookingViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = Booking.objects.select_related('service', 'customer', 'worker__user')
    serializer_class = BookingSerializer
    lookup_value_regex = UUID_REGEX

    def get_permissions(self):
        if self.action == 'create':
            return [IsCustomer()]
        if self.action in ('worker_jobs', 'accept'):
            return [IsWorker()]
        return [permissions.IsAuthenticated()]

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = serializer.save(customer=request.user)
        logger.info("Booking %s created by %s with status %s", booking.pk, request.user.pk, booking.status)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def my(self, request):
        bookings = self.get_queryset().filter(customer=request.user)
        return Response(self.get_serializer(bookings, many=True).data)

    @action(detail=False, methods=['get'], url_path='worker')
    def worker_jobs(self, request):
        worker = _worker_profile(request.user)
        bookings = self.get_queryset().filter(worker=worker)
        return Response(self.get_serializer(bookings, many=True).data)

    @action(detail=True, methods=['put'])
    def accept(self, request, pk=None):
        worker = _worker_profile(request.user)
        with transaction.atomic():
            booking = get_object_or_404(Booking.objects.select_for_update(), pk=pk)
            if booking.worker_id and booking.worker_id != worker.pk:
                logger.warning("Worker %s tried to accept booking %s held by %s", worker.pk, pk, booking.worker_id)
                raise Conflict('Booking has already been accepted by another worker')
            if booking.worker_id is None:
                if booking.status != Booking.STATUS_PENDING:
                    raise Conflict(f'Booking is {booking.status.lower()} and cannot be accepted')
                booking.worker = worker
                booking.status = Booking.STATUS_CONFIRMED
                booking.save(update_fields=['worker', 'status', 'updated_at'])
                logger.info("Worker %s accepted booking %s", worker.pk, booking.pk)
        return Response(self.get_serializer(self.get_object()).data)

    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        booking = self.get_object()
        user = request.user
        is_assigned_worker = (
            user.is_worker
            and booking.worker_id is not None
            and booking.worker.user_id == user.pk
        )
        if not (user.is_admin or is_assigned_worker or booking.customer_id == user.pk):
            raise PermissionDenied('You cannot update this booking')

        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking.change_status(serializer.validated_data['status'])
        except InvalidTransition as exc:
            raise Conflict(str(exc)) from exc
        return Response(self.get_serializer(self.get_object()).data)


# Workers


class WorkerViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = WorkerProfile.objects.select_related('user')
    serializer_class = WorkerListSerializer
    permission_classes = [permissions.AllowAny]
    filterset_class = WorkerFilter
    lookup_value_regex = UUID_REGEX

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return WorkerDetailSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == 'list':
            qs = qs.filter(is_available=True).order_by('-rating', '-total_jobs')
        return qs

    def get_permissions(self):
        if self.action in ('profile', 'submit_kyc'):
            return [IsWorker()]
        if self.action == 'kyc_status':
            return [IsAdminRole()]
        return super().get_permissions()

    @action(detail=False, methods=['get'], url_path='jobs/available')
    def available_jobs(self, request):
        jobs = Booking.objects.filter(status=Booking.STATUS_PENDING, worker__isnull=True).select_related(
            'service', 'customer'
        )
        jobs = OpenJobFilter(request.query_params, queryset=jobs).qs.order_by('-created_at')
        return Response(BookingSerializer(jobs, many=True).data)

    @action(detail=False, methods=['get', 'put'], url_path='profile/me')
    def profile(self, request):
        worker = _worker_profile(request.user)
        if request.method == 'PUT':
            serializer = WorkerUpdateSerializer(worker, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            return Response(WorkerProfileSerializer(worker).data)
        return Response(OwnWorkerProfileSerializer(worker).data)

    @action(detail=False, methods=['post'], url_path='kyc/submit')
    def submit_kyc(self, request):
        worker = _worker_profile(request.user)
        serializer = KYCSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        for field, value in serializer.validated_data.items():
            setattr(worker, field, value)
        worker.kyc_status = WorkerProfile.KYC_PENDING
        worker.kyc_submitted_at = timezone.now()
        worker.save()
        logger.info("Worker %s submitted KYC documents", worker.pk)
        return Response({'message': 'KYC documents submitted successfully', 'worker': WorkerProfileSerializer(worker).data})

    @action(detail=False, methods=['put'], url_path='kyc/status')
    def kyc_status(self, request):
        serializer = KYCStatusByUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        worker = get_object_or_404(WorkerProfile, user_id=serializer.validated_data['user_id'])
        worker.decide_kyc(serializer.validated_data['kyc_status'])
        return Response(WorkerProfileSerializer(worker).data)


# Reviews


class ReviewViewSet(mixins.CreateModelMixin, viewsets.GenericViewSet):
    serializer_class = ReviewCreateSerializer
    permission_classes = [IsCustomer]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = serializer.save()
        logger.info("Review %s for worker %s; rating now %.2f", review.pk, review.worker_id, review.worker.rating)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class WorkerReviewListView(generics.ListAPIView):
    serializer_class = ReviewSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = []

    def get_queryset(self):
        return Review.objects.filter(worker_id=self.kwargs['worker_id']).select_related('customer', 'worker__user')


# Complaints


class ComplaintViewSet(mixins.CreateModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = Complaint.objects.select_related('customer')
    serializer_class = ComplaintSerializer
    lookup_value_regex = UUID_REGEX

    def get_permissions(self):
        if self.action in ('create', 'my'):
            return [IsCustomer()]
        return [permissions.IsAuthenticated()]

    def perform_create(self, serializer):
        complaint = serializer.save(customer=self.request.user, status=Complaint.STATUS_OPEN)
        logger.info("Complaint %s filed by %s (%s)", complaint.pk, self.request.user.pk, complaint.priority)

    def get_object(self):
        complaint = super().get_object()
        user = self.request.user
        if not user.is_admin and complaint.customer_id != user.pk:
            raise PermissionDenied('Access denied')
        return complaint

    @action(detail=False, methods=['get'])
    def my(self, request):
        complaints = self.get_queryset().filter(customer=request.user)
        return Response(self.get_serializer(complaints, many=True).data)


# Administration


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_stats_view(request):
    return Response(AdminReport(request.user).overview())


class AdminBookingListView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = BookingSerializer
    queryset = Booking.objects.select_related('service', 'customer', 'worker__user')
    filter_backends = []


class AdminComplaintListView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = ComplaintSerializer
    queryset = Complaint.objects.select_related('customer')
    filter_backends = []


class AdminUserListView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = AdminUserSerializer
    pagination_class = AdminListPagination
    filterset_class = AdminUserFilter
    search_fields = ['name', 'email']
    queryset = User.objects.select_related('customer_profile', 'worker_profile').prefetch_related(
        'customer_profile__addresses'
    ).order_by('-date_joined')


class AdminWorkerListView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = AdminWorkerSerializer
    pagination_class = AdminListPagination
    filter_backends = []
    queryset = WorkerProfile.objects.select_related('user').order_by('-user__date_joined')


class AdminKYCPendingView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = WorkerProfileSerializer
    filter_backends = []
    queryset = WorkerProfile.objects.filter(kyc_status=WorkerProfile.KYC_PENDING).select_related('user').order_by(
        '-user__date_joined'
    )


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def admin_verify_worker_view(request, pk):
    worker = get_object_or_404(WorkerProfile.objects.select_related('user'), pk=pk)
    worker.is_verified = True
    worker.save(update_fields=['is_verified', 'updated_at'])
    logger.info("Worker %s verified by %s", worker.pk, request.user.pk)
    return Response(WorkerProfileSerializer(worker).data)


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def admin_suspend_worker_view(request, pk):
    worker = get_object_or_404(WorkerProfile.objects.select_related('user'), pk=pk)
    worker.is_available = False
    worker.save(update_fields=['is_available', 'updated_at'])
    logger.info("Worker %s suspended by %s", worker.pk, request.user.pk)
    return Response(WorkerProfileSerializer(worker).data)


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def admin_kyc_decision_view(request, worker_id):
    worker = get_object_or_404(WorkerProfile.objects.select_related('user'), pk=worker_id)
    serializer = KYCDecisionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    worker.decide_kyc(serializer.validated_data['status'])
    return Response(WorkerProfileSerializer(worker).data)


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def admin_complaint_status_view(request, pk):
    complaint = get_object_or_404(Complaint.objects.select_related('customer'), pk=pk)
    serializer = ComplaintStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    complaint.status = serializer.validated_data['status']
    if serializer.validated_data.get('priority'):
        complaint.priority = serializer.validated_data['priority']
    complaint.save(update_fields=['status', 'priority', 'updated_at'])
    logger.info("Complaint %s moved to %s", complaint.pk, complaint.status)
    return Response(ComplaintSerializer(complaint).data)


# Reporting


@api_view(['GET'])
def dashboard_view(request):
    return Response(report_for(request.user).dashboard())


@api_view(['GET'])
@permission_classes([IsAdminRole])
def analytics_overview_view(request):
    return Response(AdminReport(request.user).analytics(_time_range(request)))


@api_view(['GET'])
@permission_classes([IsWorker])
def worker_analytics_view(request):
    return Response(WorkerReport(request.user).analytics(_time_range(request)))


@api_view(['GET'])
def notifications_view(request):
    return Response(report_for(request.user).notifications())


@api_view(['PUT'])
def mark_notification_read_view(request, notification_id):
    # Notifications are synthesized per request, so there is nothing to store.
    return Response({'success': True})


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_view(request):
    return Response({'status': 'OK', 'message': 'Server is running'})
