from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eats.database import get_db
from eats.models import User
from eats.routers.deps import owner_only
from eats.schemas import (
    AllCategoriesOutput,
    CategoryOutput,
    CategoryResponse,
    CoreOutput,
    CreateDishInput,
    CreateRestaurantInput,
    EditDishInput,
    EditRestaurantInput,
    MyRestaurantOutput,
    MyRestaurantsOutput,
    RestaurantOutput,
    RestaurantsOutput,
    SearchRestaurantOutput,
)
from eats.services.restaurants import RestaurantService

router = APIRouter(prefix="/restaurants", tags=["Restaurants"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])
dishes_router = APIRouter(prefix="/dishes", tags=["Dishes"])


def get_restaurant_service(db: AsyncSession = Depends(get_db)) -> RestaurantService:
    return RestaurantService(db)


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.post("", response_model=CoreOutput, summary="createRestaurant")
async def create_restaurant(
    data: CreateRestaurantInput,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CoreOutput:
    result = await service.create_restaurant(owner, data)
    return CoreOutput(**result.to_dict())


@router.get("", response_model=RestaurantsOutput, summary="allRestaurants")
async def all_restaurants(
    page: int = Query(1, ge=1),
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantsOutput:
    result = await service.all_restaurants(page)
    if not result.ok:
        return RestaurantsOutput(**result.to_dict())
    return RestaurantsOutput(
        **result.to_dict(),
        results=result.value.results,
        total_pages=result.value.total_pages,
        total_results=result.value.total_results,
    )


@router.get("/search", response_model=SearchRestaurantOutput, summary="searchRestaurant")
async def search_restaurant(
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    service: RestaurantService = Depends(get_restaurant_service),
) -> SearchRestaurantOutput:
    result = await service.search_restaurant_by_name(query, page)
    if not result.ok:
        return SearchRestaurantOutput(**result.to_dict())
    return SearchRestaurantOutput(
        **result.to_dict(),
        restaurants=result.value.results,
        total_pages=result.value.total_pages,
        total_results=result.value.total_results,
    )


@router.get("/mine", response_model=MyRestaurantsOutput, summary="myRestaurants")
async def my_restaurants(
    page: int = Query(1, ge=1),
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> MyRestaurantsOutput:
    result = await service.my_restaurants(owner, page)
    if not result.ok:
        return MyRestaurantsOutput(**result.to_dict())
    return MyRestaurantsOutput(
        **result.to_dict(),
        restaurants=result.value.results,
        total_pages=result.value.total_pages,
        total_results=result.value.total_results,
    )


@router.get("/mine/{restaurant_id}", response_model=MyRestaurantOutput, summary="myRestaurant")
async def my_restaurant(
    restaurant_id: int,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> MyRestaurantOutput:
    result = await service.my_restaurant(owner, restaurant_id)
    if not result.ok:
        return MyRestaurantOutput(**result.to_dict())
    return MyRestaurantOutput(
        **result.to_dict(),
        restaurant=result.value.restaurant,
        orders=result.value.orders,
    )


@router.get("/{restaurant_id}", response_model=RestaurantOutput, summary="restaurant")
async def restaurant(
    restaurant_id: int,
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantOutput:
    result = await service.find_restaurant_by_id(restaurant_id)
    return RestaurantOutput(**result.to_dict(), restaurant=result.value)


@router.patch("/{restaurant_id}", response_model=CoreOutput, summary="editRestaurant")
async def edit_restaurant(
    restaurant_id: int,
    data: EditRestaurantInput,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CoreOutput:
    result = await service.edit_restaurant(owner, restaurant_id, data)
    return CoreOutput(**result.to_dict())


@router.delete("/{restaurant_id}", response_model=CoreOutput, summary="deleteRestaurant")
async def delete_restaurant(
    restaurant_id: int,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CoreOutput:
    result = await service.delete_restaurant(owner, restaurant_id)
    return CoreOutput(**result.to_dict())


# =============================================================================
# CATEGORIES
# =============================================================================

@categories_router.get("", response_model=AllCategoriesOutput, summary="allCategories")
async def all_categories(
    service: RestaurantService = Depends(get_restaurant_service),
) -> AllCategoriesOutput:
    result = await service.all_categories()
    if not result.ok:
        return AllCategoriesOutput(**result.to_dict())

    categories = []
    for listing in result.value:
        category = CategoryResponse.model_validate(listing.category)
        category.restaurant_count = listing.restaurant_count
        categories.append(category)
    return AllCategoriesOutput(**result.to_dict(), categories=categories)


@categories_router.get("/{slug}", response_model=CategoryOutput, summary="category")
async def category(
    slug: str,
    page: int = Query(1, ge=1),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CategoryOutput:
    result = await service.find_category_by_slug(slug, page)
    if not result.ok:
        return CategoryOutput(**result.to_dict())
    restaurants = result.value.restaurants
    return CategoryOutput(
        **result.to_dict(),
        category=result.value.category,
        restaurants=restaurants.results,
        total_pages=restaurants.total_pages,
        total_results=restaurants.total_results,
    )


# =============================================================================
# DISHES
# =============================================================================

@dishes_router.post("", response_model=CoreOutput, summary="createDish")
async def create_dish(
    data: CreateDishInput,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CoreOutput:
    result = await service.create_dish(owner, data)
    return CoreOutput(**result.to_dict())


@dishes_router.patch("/{dish_id}", response_model=CoreOutput, summary="editDish")
async def edit_dish(
    dish_id: int,
    data: EditDishInput,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CoreOutput:
    result = await service.edit_dish(owner, dish_id, data)
    return CoreOutput(**result.to_dict())


@dishes_router.delete("/{dish_id}", response_model=CoreOutput, summary="deleteDish")
async def delete_dish(
    dish_id: int,
    owner: User = Depends(owner_only),
    service: RestaurantService = Depends(get_restaurant_service),
) -> CoreOutput:
    result = await service.delete_dish(owner, dish_id)
    return CoreOutput(**result.to_dict())
