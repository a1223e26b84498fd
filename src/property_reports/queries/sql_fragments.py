# --- SQL Logic Fragments ---
# All reports read the canonical property_sales table. Set operations
# (UNION / INTERSECT / EXCEPT) deduplicate on the full projected row.
# Every statement ends with an ORDER BY so repeated runs are identical.

# 1. High-Value Listings or Sales
HIGH_VALUE_SQL = """
SELECT address, town, assessed_value AS amount, 'Listed_Value' AS source
FROM property_sales
WHERE assessed_value > :threshold

UNION

SELECT address, town, sale_amount AS amount, 'Sale_Amount' AS source
FROM property_sales
WHERE sale_amount > :threshold

ORDER BY amount DESC, town, address, source
"""

# 2. Exact Matches in Assessed and Sold Values
EXACT_MATCHES_SQL = """
SELECT address, town, assessed_value
FROM property_sales
WHERE assessed_value IS NOT NULL

INTERSECT

SELECT address, town, sale_amount
FROM property_sales
WHERE sale_amount IS NOT NULL

ORDER BY town, address, assessed_value
"""

# 3. Assessed but Not Sold
ASSESSED_NOT_SOLD_SQL = """
SELECT address, town, assessed_value
FROM property_sales
WHERE assessed_value IS NOT NULL

EXCEPT

SELECT address, town, sale_amount
FROM property_sales
WHERE sale_amount IS NOT NULL

ORDER BY town, address, assessed_value
"""

# 4. Assessments in one town but not another
TOWN_EXCLUSIVE_SQL = """
SELECT address, assessed_value
FROM property_sales
WHERE town = :town_a AND assessed_value IS NOT NULL

EXCEPT

SELECT address, assessed_value
FROM property_sales
WHERE town = :town_b AND assessed_value IS NOT NULL

ORDER BY address, assessed_value
"""

# 5. Shared Property Types and Values Between two towns
SHARED_PROPERTY_TYPES_SQL = """
SELECT property_type, assessed_value
FROM property_sales
WHERE town = :town_a AND property_type IS NOT NULL AND assessed_value IS NOT NULL

INTERSECT

SELECT property_type, assessed_value
FROM property_sales
WHERE town = :town_b AND property_type IS NOT NULL AND assessed_value IS NOT NULL

ORDER BY property_type, assessed_value
"""

# 6. Recent Listings That Haven't Sold
# :min_year is derived from an explicit reference date, never CURRENT_DATE.
RECENT_UNSOLD_SQL = """
WITH recent_listings AS (
    SELECT address, town, list_year, assessed_value
    FROM property_sales
    WHERE list_year >= :min_year
),
recent_sales AS (
    SELECT address, town, list_year
    FROM property_sales
    WHERE list_year >= :min_year
      AND sale_amount IS NOT NULL
),
unsold_keys AS (
    SELECT address, town, list_year FROM recent_listings
    EXCEPT
    SELECT address, town, list_year FROM recent_sales
)
SELECT DISTINCT l.address, l.town, l.list_year, l.assessed_value
FROM recent_listings l
JOIN unsold_keys k
  ON l.address = k.address AND l.town = k.town AND l.list_year = k.list_year
ORDER BY l.list_year DESC, l.town, l.address, l.assessed_value
"""

# 7. Rank properties by Sale Amount within each town
# RANK(): ties share a rank and the next rank is skipped.
TOP_SALES_BY_TOWN_SQL = """
WITH ranked_sales AS (
    SELECT
        town,
        address,
        sale_amount,
        RANK() OVER (PARTITION BY town ORDER BY sale_amount DESC) AS rank_within_town
    FROM property_sales
    WHERE sale_amount IS NOT NULL
)
SELECT town, address, sale_amount, rank_within_town
FROM ranked_sales
WHERE rank_within_town <= :top_n
ORDER BY town, rank_within_town, address
"""

# 8. Average sale amount change between two list years, by town
# Column aliases are filled with the (integer) years; values are bound.
YOY_PRICE_CHANGE_SQL = """
WITH avg_sales_by_year AS (
    SELECT
        town,
        list_year,
        AVG(sale_amount) AS avg_price
    FROM property_sales
    WHERE sale_amount IS NOT NULL
      AND list_year IN (:base_year, :compare_year)
    GROUP BY town, list_year
),
price_diff AS (
    SELECT
        town,
        MAX(CASE WHEN list_year = :compare_year THEN avg_price END) AS avg_compare,
        MAX(CASE WHEN list_year = :base_year THEN avg_price END) AS avg_base
    FROM avg_sales_by_year
    GROUP BY town
)
SELECT
    town,
    avg_compare AS avg_{compare_year},
    avg_base AS avg_{base_year},
    (avg_compare - avg_base) AS price_change,
    CASE
        WHEN avg_base = 0 THEN NULL
        ELSE ROUND((avg_compare - avg_base) / avg_base * 100, 2)
    END AS percent_change
FROM price_diff
WHERE avg_compare IS NOT NULL AND avg_base IS NOT NULL
ORDER BY percent_change DESC NULLS LAST, town
"""

# 9. Most common property type in each town (ties all kept)
DOMINANT_PROPERTY_TYPE_SQL = """
WITH type_count AS (
    SELECT
        town,
        property_type,
        COUNT(*) AS property_count,
        RANK() OVER (PARTITION BY town ORDER BY COUNT(*) DESC) AS rnk
    FROM property_sales
    WHERE property_type IS NOT NULL
    GROUP BY town, property_type
)
SELECT town, property_type, property_count
FROM type_count
WHERE rnk = 1
ORDER BY town, property_type
"""

# 10. Price range histogram
# Bands are contiguous: each upper bound is inclusive and the next band
# starts strictly above it, so fractional amounts never fall through.
PRICE_BUCKETS_SQL = """
WITH bucketed AS (
    SELECT
        CASE
            WHEN sale_amount < 100000 THEN 'Under 100K'
            WHEN sale_amount <= 200000 THEN '100K-200K'
            WHEN sale_amount <= 400000 THEN '200K-400K'
            WHEN sale_amount <= 600000 THEN '400K-600K'
            ELSE 'Over 600K'
        END AS price_bucket,
        CASE
            WHEN sale_amount < 100000 THEN 1
            WHEN sale_amount <= 200000 THEN 2
            WHEN sale_amount <= 400000 THEN 3
            WHEN sale_amount <= 600000 THEN 4
            ELSE 5
        END AS band_order
    FROM property_sales
    WHERE sale_amount IS NOT NULL
)
SELECT price_bucket, COUNT(*) AS count
FROM bucketed
GROUP BY price_bucket, band_order
ORDER BY count DESC, band_order
"""

# 11. Sales ratios (stats are computed in pandas: SQLite has no STDDEV)
SALES_RATIOS_SQL = """
SELECT town, address, sales_ratio
FROM property_sales
WHERE sales_ratio IS NOT NULL
"""

# 12. Top towns by year-over-year appreciation rate
TOP_APPRECIATION_SQL = """
WITH avg_base AS (
    SELECT town, AVG(sale_amount) AS avg_base
    FROM property_sales
    WHERE sale_amount IS NOT NULL AND list_year = :base_year
    GROUP BY town
),
avg_compare AS (
    SELECT town, AVG(sale_amount) AS avg_compare
    FROM property_sales
    WHERE sale_amount IS NOT NULL AND list_year = :compare_year
    GROUP BY town
)
SELECT
    a.town AS town,
    a.avg_base AS avg_{base_year},
    b.avg_compare AS avg_{compare_year},
    CASE
        WHEN a.avg_base = 0 THEN NULL
        ELSE ROUND((b.avg_compare - a.avg_base) / a.avg_base * 100, 2)
    END AS appreciation_rate
FROM avg_base a
JOIN avg_compare b ON a.town = b.town
ORDER BY appreciation_rate DESC NULLS LAST, town
LIMIT :limit
"""
